"""Test split schemas"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from splitcore.models.split import SplitMethod, SplitStatus
from splitcore.schemas.split import (AmountSplitValue, EqualSplitValue,
                                     PercentageSplitValue, SharesSplitValue,
                                     SplitDraft, SplitUpdate,
                                     tag_split_values)


def draft_data(**overrides):
    data = {
        "title": "Dinner",
        "base_amount": 100,
        "split_method": "percentage",
        "allocations": [
            {"member_id": "a", "member_name": "A", "split_value": {"amount": 0, "percentage": 60, "shares": 1}},
            {"member_id": "b", "member_name": "B", "split_value": {"amount": 0, "percentage": 40, "shares": 1}},
        ],
    }
    data.update(overrides)
    return data


class TestTagSplitValues:
    """Test legacy split value tagging"""

    def test_untagged_values_get_method(self):
        """Test legacy three-field values are tagged with the split method"""
        tagged = tag_split_values(draft_data())

        assert tagged["allocations"][0]["split_value"]["method"] == "percentage"

    def test_missing_value_becomes_empty_variant(self):
        """Test a member without split value gets the bare method"""
        tagged = tag_split_values({
            "split_method": SplitMethod.EQUAL,
            "allocations": [{"member_id": "a", "member_name": "A"}],
        })

        assert tagged["allocations"][0]["split_value"] == {"method": "equal"}

    def test_tagged_values_untouched(self):
        """Test values with a method are left alone"""
        data = {"split_method": "shares", "allocations": [{"split_value": {"method": "amount"}}]}

        assert tag_split_values(data)["allocations"][0]["split_value"] == {"method": "amount"}

    def test_non_dict_passthrough(self):
        """Test non-dict input is returned unchanged"""
        assert tag_split_values("raw") == "raw"


class TestSplitDraft:
    """Test split creation schema"""

    def test_legacy_shape_selects_active_field(self):
        """Test the split method picks the meaningful field"""
        draft = SplitDraft.model_validate(draft_data())

        value = draft.allocations[0].split_value
        assert isinstance(value, PercentageSplitValue)
        assert value.percentage == Decimal("60")

    @pytest.mark.parametrize(
        "method, expected",
        [
            ("equal", EqualSplitValue),
            ("amount", AmountSplitValue),
            ("shares", SharesSplitValue),
        ],
    )
    def test_variant_per_method(self, method, expected):
        """Test each method yields its own variant"""
        draft = SplitDraft.model_validate(draft_data(split_method=method))

        assert isinstance(draft.allocations[0].split_value, expected)

    def test_float_inputs_become_exact_decimals(self):
        """Test floats are converted without binary artifacts"""
        draft = SplitDraft.model_validate(draft_data(base_amount=0.1, tax_percentage=7.5))

        assert draft.base_amount == Decimal("0.1")
        assert draft.tax_percentage == Decimal("7.5")

    def test_defaults(self):
        """Test default method, tax and status"""
        draft = SplitDraft(title="Taxi", base_amount="12")

        assert draft.split_method == SplitMethod.EQUAL
        assert draft.tax_percentage == Decimal("0")
        assert draft.split_status == SplitStatus.ACTIVE

    def test_mismatched_variant_rejected(self):
        """Test a member value of another method is rejected"""
        data = draft_data(split_method="shares")
        data["allocations"][0]["split_value"] = {"method": "amount", "amount": 5}

        with pytest.raises(ValidationError, match="expected 'shares'"):
            SplitDraft.model_validate(data)

    def test_duplicate_members_rejected(self):
        """Test a member can appear only once"""
        data = draft_data(split_method="equal")
        data["allocations"][1]["member_id"] = "a"

        with pytest.raises(ValidationError, match="only once"):
            SplitDraft.model_validate(data)

    @pytest.mark.parametrize("status", ["completed", "cancelled"])
    def test_terminal_initial_status_rejected(self, status):
        """Test splits start as draft or active"""
        with pytest.raises(ValidationError, match="cannot be created"):
            SplitDraft.model_validate(draft_data(split_status=status))

    def test_percentage_over_100_rejected(self):
        """Test a single member percentage above 100"""
        data = draft_data()
        data["allocations"][0]["split_value"] = {"percentage": 120}

        with pytest.raises(ValidationError):
            SplitDraft.model_validate(data)

    def test_negative_base_amount_left_to_engine(self):
        """Test range checks on the base amount are not done by the schema"""
        draft = SplitDraft.model_validate(draft_data(base_amount=-1))

        assert draft.base_amount == Decimal("-1")


class TestSplitUpdate:
    """Test split update schema"""

    def test_partial_update(self):
        """Test only given fields are set"""
        update = SplitUpdate(base_amount="80")

        assert update.model_fields_set == {"base_amount"}
        assert update.base_amount == Decimal("80")

    def test_legacy_allocations_tagged_with_payload_method(self):
        """Test update allocations are tagged with split_method from the payload"""
        update = SplitUpdate.model_validate({
            "split_method": "amount",
            "allocations": [{"member_id": "a", "member_name": "A", "split_value": {"amount": 5}}],
        })

        assert isinstance(update.allocations[0].split_value, AmountSplitValue)
