"""Tests for notification message templates."""

import pytest
from checkout.notification.templates import MessageKind, get_template


class TestTemplates:
    def test_every_kind_has_a_template(self):
        for kind in MessageKind:
            assert get_template(kind.value).subject

    def test_render_fills_context(self):
        subject, body = get_template(MessageKind.ORDER_CANCELLED.value).render(
            {"order_id": "ord-001", "reason": "Out of stock"}
        )
        assert subject == "Order ord-001 cancelled"
        assert "Out of stock" in body

    def test_shipping_updates_go_to_every_channel(self):
        assert get_template(MessageKind.ORDER_SHIPPED.value).channels == ("Email", "WhatsApp", "Push")

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            get_template("Birthday")
