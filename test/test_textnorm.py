import pytest

from utils.textnorm import collapse_spaces, normalize_dashes, normalize_phone, normalize_postal


class TestNormalizePhone:
    @pytest.mark.parametrize("raw, expected", [
        ("09012345678", "09012345678"),
        ("9012345678", "09012345678"),
        ("8012345678", "08012345678"),
        ("7012345678", "07012345678"),
        ("312345678", "0312345678"),
        ("80-1234-5678", "080-1234-5678"),
        ("90-1234-5678", "090-1234-5678"),
        ("70-1234-5678", "070-1234-5678"),
        ("3-1234-5678", "03-1234-5678"),
        ("03-1234-5678", "03-1234-5678"),
    ])
    def test_leading_zero_repair(self, raw, expected):
        assert normalize_phone(raw) == expected

    def test_strips_non_digit_non_hyphen(self):
        assert normalize_phone("(090)1234-5678") == "0901234-5678"
        assert normalize_phone("tel: 090 1234 5678") == "09012345678"

    def test_other_area_codes_not_repaired(self):
        assert normalize_phone("612345678") == "612345678"
        assert normalize_phone("6-1234-5678") == "6-1234-5678"
        assert normalize_phone("0612345678") == "0612345678"

    def test_empty(self):
        assert normalize_phone("") == ""
        assert normalize_phone(None) == ""
        assert normalize_phone("abc") == ""


class TestNormalizePostal:
    @pytest.mark.parametrize("raw, expected", [
        ("123", "0000123"),
        ("〒123-4567", "1234567"),
        ("1234567890", "4567890"),
        ("104-0061", "1040061"),
        ("1040061", "1040061"),
        ("040061", "0040061"),
        ("001040061", "1040061"),
    ])
    def test_cases(self, raw, expected):
        assert normalize_postal(raw) == expected

    def test_empty(self):
        assert normalize_postal("") == ""
        assert normalize_postal(None) == ""
        assert normalize_postal("〒") == ""

    def test_fullwidth_digits_are_not_digits(self):
        assert normalize_postal("１０４-0061") == "0000061"

    @pytest.mark.parametrize("raw", ["", "1", "〒100-0001", "12345678901", "abc", "５５５"])
    def test_idempotent_and_fixed_width(self, raw):
        once = normalize_postal(raw)
        assert normalize_postal(once) == once
        assert len(once) in (0, 7)


class TestSpacesAndDashes:
    def test_collapse_spaces(self):
        assert collapse_spaces("  東京都　　渋谷区  神宮前 ") == "東京都 渋谷区 神宮前"
        assert collapse_spaces(None) == ""

    def test_dashes(self):
        assert normalize_dashes("1‐2–3—4―5−6－7") == "1-2-3-4-5-6-7"

    def test_long_vowel_only_after_digit(self):
        assert normalize_dashes("銀座7ー8ー8") == "銀座7-8-8"
        assert normalize_dashes("銀座７ー８ー８") == "銀座７-８-８"
        assert normalize_dashes("タワー コーポ") == "タワー コーポ"
