"""Contextual memory — bounded entry store + weighted retrieval + context assembly.

Layout:
    ~/.contextmem/
    ├── contextmem.toml                # Optional configuration
    └── user_context.json              # Persisted store: version, lastUpdated, entries

Pipeline:
    add_entry ─► vectorizer ─► EntryStore (bounds) ─► PersistenceDaemon
                                 │
                                 └─► RecencyWindow (frequency, in memory only)

    assemble_context ─► RetrievalScorer ─► ContextAssembler (+ Summary)
"""
