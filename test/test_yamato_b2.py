from dataclasses import replace

import pytest

from converters.address import SplitAddress
from services import yamato_b2
from services.carrier_config import DEFAULT_SHIPPING_CONFIG, YamatoConfig
from services.models import OrderData
from services.yamato_b2 import (
    OKINAWA_ITEM_NAME,
    YAMATO_B2_HEADER,
    generate_csv,
    generate_row,
)

SHIP_DATE = "2026/02/16"


@pytest.fixture
def cfg():
    return DEFAULT_SHIPPING_CONFIG.yamato


@pytest.fixture
def order():
    return OrderData(
        payment_id="pay_001",
        name="田中太郎",
        postal="104-0061",
        address="東京都中央区銀座7-8-8",
        email="test@example.com",
        phone="09012345678",
    )


def test_header_has_55_columns():
    assert len(YAMATO_B2_HEADER) == 55
    assert len(set(YAMATO_B2_HEADER)) == 55

def test_row_has_55_columns(order, cfg):
    assert len(generate_row(order, SHIP_DATE, cfg)) == 55

def test_empty_order_still_55_columns(cfg):
    row = generate_row(OrderData(), "", cfg)
    assert len(row) == 55
    assert row[8] == ""
    assert row[10] == ""
    assert row[11] == "" and row[12] == ""

def test_identity_columns(order, cfg):
    row = generate_row(order, SHIP_DATE, cfg)
    assert row[0] == "pay_001"
    assert row[4] == SHIP_DATE
    assert row[15] == "田中太郎"
    assert row[17] == "様"
    assert row[48] == "test@example.com"
    assert row[50] == cfg.forecast_message

def test_phone_and_postal_normalized(order, cfg):
    row = generate_row(replace(order, phone="9012345678"), SHIP_DATE, cfg)
    assert row[8] == "09012345678"
    assert row[10] == "1040061"

def test_address_split_into_two_columns(order, cfg):
    row = generate_row(replace(order, address="東京都渋谷区1-2-3 マンションA101"), SHIP_DATE, cfg)
    assert row[11] == "東京都渋谷区1-2-3"
    assert row[12] == "マンションA101"

def test_sender_and_billing(order, cfg):
    custom = replace(cfg, sender_phone="3-1111-2222", billing_customer_code="123456789012",
                     billing_category_code="", fare_management_no="02")
    row = generate_row(order, SHIP_DATE, custom)
    assert row[19] == "03-1111-2222"
    assert row[20] == custom.sender_phone_branch
    assert row[21] == custom.sender_postal
    assert row[22] == custom.sender_address
    assert row[24] == custom.sender_name
    assert row[39] == "123456789012"
    assert row[40] == ""
    assert row[41] == "02"

def test_fixed_constants(order, cfg):
    row = generate_row(order, SHIP_DATE, cfg)
    assert row[1] == "0"
    assert row[35] == "0"
    assert row[37] == "1"
    assert row[38] == "1"
    assert row[42] == "0"
    assert row[47] == "1"
    assert row[49] == "1"
    assert row[54] == "0"

def test_default_item_name(order, cfg):
    assert generate_row(order, SHIP_DATE, cfg)[27] == cfg.item_name

def test_okinawa_overrides_item_name(order, cfg):
    custom = replace(cfg, item_name="化粧品")
    row = generate_row(replace(order, address="沖縄県那覇市おもろまち1-2-3"), SHIP_DATE, custom)
    assert row[27] == OKINAWA_ITEM_NAME

def test_cool_type(order, cfg):
    assert generate_row(order, SHIP_DATE, replace(cfg, cool_type="0"))[2] == "0"
    assert generate_row(order, SHIP_DATE, replace(cfg, cool_type=""))[2] == "2"

def test_completed_mail_off_by_default(order, cfg):
    assert generate_row(order, SHIP_DATE, cfg)[51:54] == ["0", "", ""]

def test_completed_mail_on(order, cfg):
    custom = replace(cfg, notify_completed=True)
    assert generate_row(order, SHIP_DATE, custom)[51:54] == ["1", custom.sender_email, custom.completed_message]

def test_recipient_kana_off_by_default(order, cfg):
    assert generate_row(order, SHIP_DATE, cfg)[16] == ""

def test_recipient_kana_on(order, cfg, monkeypatch):
    monkeypatch.setattr(yamato_b2, "to_hankaku_kana", lambda s: "ﾀﾅｶﾀﾛｳ")
    row = generate_row(order, SHIP_DATE, replace(cfg, fill_recipient_kana=True))
    assert row[16] == "ﾀﾅｶﾀﾛｳ"

def test_custom_splitter(order, cfg):
    class Fixed:
        def split(self, raw):
            return SplitAddress("A", "B")

    row = generate_row(order, SHIP_DATE, cfg, splitter=Fixed())
    assert (row[11], row[12]) == ("A", "B")

def test_config_is_required_explicitly(order):
    row = generate_row(order, SHIP_DATE, YamatoConfig())
    assert row[24] == ""
    assert row[2] == "2"

def test_csv_keeps_order(order, cfg):
    second = replace(order, payment_id="pay_002", name="山田花子")
    text = generate_csv([order, second], SHIP_DATE, cfg)
    lines = text.split("\r\n")
    assert len(lines) == 3
    assert lines[0].startswith('"お客様管理番号"')
    assert lines[1].startswith('"pay_001"')
    assert lines[2].startswith('"pay_002"')
