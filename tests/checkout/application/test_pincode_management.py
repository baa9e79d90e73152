"""Application tests for pincode administration and serviceability checks."""

import pytest
from checkout.errors import ServiceabilityError
from checkout.pincode.management import ActivatePincode, AddPincode, DeactivatePincode, UpdatePincode
from checkout.pincode.pincode import Pincode
from checkout.pincode.serviceability import check_serviceability, list_pincodes, require_serviceable
from protean import current_domain
from protean.exceptions import ValidationError


def _add(code="560001", **overrides):
    kwargs = {"code": code, "city": "Bengaluru", "state": "Karnataka"}
    kwargs.update(overrides)
    return current_domain.process(AddPincode(**kwargs), asynchronous=False)


class TestAddPincode:
    def test_persists(self):
        code = _add()
        pincode = current_domain.repository_for(Pincode).get(code)
        assert pincode.city == "Bengaluru"
        assert pincode.delivery_days == 3

    def test_duplicate_rejected(self):
        _add()
        with pytest.raises(ValidationError) as exc:
            _add()
        assert "code" in exc.value.messages


class TestUpdatePincode:
    def test_updates_delivery_settings(self):
        _add()
        current_domain.process(
            UpdatePincode(code="560001", delivery_days=1, cod_available=False),
            asynchronous=False,
        )
        result = check_serviceability("560001")
        assert result.delivery_days == 1
        assert result.cod_available is False


class TestServiceability:
    def test_active_pincode_is_serviceable(self):
        _add(delivery_days=2)
        result = check_serviceability("560001")
        assert result.serviceable is True
        assert result.city == "Bengaluru"
        assert result.delivery_days == 2

    def test_unknown_pincode_is_not_serviceable(self):
        result = check_serviceability("999999")
        assert result.serviceable is False
        assert result.delivery_days is None

    def test_inactive_pincode_is_not_serviceable(self):
        _add()
        current_domain.process(DeactivatePincode(code="560001"), asynchronous=False)
        assert check_serviceability("560001").serviceable is False

    def test_reactivated_pincode_is_serviceable_again(self):
        _add()
        current_domain.process(DeactivatePincode(code="560001"), asynchronous=False)
        current_domain.process(ActivatePincode(code="560001"), asynchronous=False)
        assert check_serviceability("560001").serviceable is True

    @pytest.mark.parametrize("code", ["56-001", " 560001", "\u0665\u0666\u0660\u0660\u0660\u0661"])
    def test_malformed_code_is_a_validation_error(self, code):
        with pytest.raises(ValidationError):
            check_serviceability(code)

    def test_require_serviceable_raises(self):
        with pytest.raises(ServiceabilityError) as exc:
            require_serviceable("999999")
        assert "pincode" in exc.value.messages


class TestListPincodes:
    def test_sorted_by_code(self):
        _add("560002")
        _add("110001", city="New Delhi", state="Delhi")
        assert [p.code for p in list_pincodes()] == ["110001", "560002"]

    def test_active_only(self):
        _add("560002")
        _add("560001")
        current_domain.process(DeactivatePincode(code="560002"), asynchronous=False)
        assert [p.code for p in list_pincodes(active_only=True)] == ["560001"]
