import pytest

from postex_bridge.services.normalizer import guess_carrier_format, normalize


class TestNormalize:
    @pytest.mark.parametrize(
        "raw",
        ["Lahore", "lahore", "  LAHORE  ", "Lahore City", "lahore city", "Lahore  CITY ", "Lahore District",
         "Lahore Tehsil", "lahore division", "Lahore Div", "Lahore Town", "\tLahore\n"],
    )
    def test_case_whitespace_and_suffix_variants_collapse(self, raw):
        assert normalize(raw) == "lahore"

    def test_multi_word_city_keeps_inner_words(self):
        assert normalize("Rahim  Yar Khan District") == "rahim yar khan"

    def test_stacked_suffixes_are_all_removed(self):
        assert normalize("Sukkur City District") == "sukkur"

    def test_suffix_inside_name_is_kept(self):
        assert normalize("Cityville") == "cityville"
        assert normalize("Dera Ismail Khan") == "dera ismail khan"

    def test_bare_suffix_is_not_emptied(self):
        assert normalize("City") == "city"
        assert normalize("  district ") == "district"

    def test_empty_input(self):
        assert normalize("") == ""
        assert normalize("   ") == ""

    @pytest.mark.parametrize(
        "raw",
        ["Lahore City", "Sukkur City District", "City", "  Mirpur   Khas  Town ", "Karachi", "Town City", ""],
    )
    def test_idempotent(self, raw):
        once = normalize(raw)
        assert normalize(once) == once

    def test_sukkur_town(self):
        assert normalize("Sukkur Town") == "sukkur"


class TestGuessCarrierFormat:
    def test_capitalises_each_word(self):
        assert guess_carrier_format("rahim yar khan") == "Rahim Yar Khan"

    def test_single_word(self):
        assert guess_carrier_format("sukkur") == "Sukkur"
