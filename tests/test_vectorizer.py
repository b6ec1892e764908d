"""Tests for text feature vectors and cosine similarity."""

import pytest

from contextmem.memory.vectorizer import (
    VECTOR_SIZE,
    content_hash,
    cosine_similarity,
    vectorize,
)


class TestVectorize:
    def test_deterministic(self):
        text = "Relatório trimestral: 3 metas, 2 riscos"
        assert vectorize(text) == vectorize(text)

    def test_fixed_size(self):
        for text in ["", "a", "uma frase qualquer", "x" * 5000, "线\n行"]:
            assert len(vectorize(text)) == VECTOR_SIZE

    def test_empty_text_is_near_zero(self):
        v = vectorize("")
        assert v[:5] == (0.0, 0.0, 0.0, 0.0, 0.0)
        assert v[5] == pytest.approx(0.1)  # a single empty line
        assert v[6] == 0.0
        assert 0.0 <= v[7] < 1.0

    def test_features(self):
        v = vectorize("Hello World 42!")
        assert v[0] == pytest.approx(15 / 1000)
        assert v[1] == pytest.approx(3 / 100)
        assert v[2] == 0.0
        assert v[3] == 1.0
        assert v[4] == pytest.approx(1 / 16)
        assert v[5] == pytest.approx(0.1)
        assert v[6] == pytest.approx(2 / 16)

    def test_common_words_share(self):
        # "o", "e", "o" are function words; 3 / (5 + 1)
        assert vectorize("o gato e o cão")[2] == pytest.approx(0.5)

    def test_common_words_case_insensitive(self):
        assert vectorize("O gato")[2] == pytest.approx(1 / 3)

    def test_line_count(self):
        assert vectorize("a\nb\nc")[5] == pytest.approx(0.3)
        assert vectorize("a\r\nb")[5] == pytest.approx(0.2)

    def test_no_digits(self):
        assert vectorize("sem números aqui")[3] == 0.0

    def test_unicode_uppercase(self):
        text = "ÁGUA está ótima"
        assert vectorize(text)[6] == pytest.approx(4 / (len(text) + 1))

    def test_hash_feature_in_unit_range(self):
        text = "discriminator"
        assert vectorize(text)[7] == pytest.approx((content_hash(text) % 1000) / 1000)

    def test_content_hash_stable(self):
        assert content_hash("abc") == content_hash("abc")
        assert content_hash("abc") != content_hash("abd")


class TestCosineSimilarity:
    def test_symmetric(self):
        a = vectorize("primeiro texto de exemplo")
        b = vectorize("Second SAMPLE, with 7 digits!")
        assert cosine_similarity(a, b) == cosine_similarity(b, a)

    def test_self_similarity_is_one(self):
        a = vectorize("qualquer coisa")
        assert cosine_similarity(a, a) == pytest.approx(1.0)

    def test_zero_norm(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0
        assert cosine_similarity([1.0, 2.0], [0.0, 0.0]) == 0.0

    def test_size_mismatch(self):
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0]) == 0.0

    def test_orthogonal(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0
