from dataclasses import replace

import pytest

from services.carrier_config import DEFAULT_SHIPPING_CONFIG, JapanPostConfig
from services.japanpost import JAPANPOST_HEADER, generate_csv, generate_row
from services.models import OrderData

SHIP_DATE = "2026/02/16"


@pytest.fixture
def cfg():
    return JapanPostConfig(
        sender_name="テストクリニック",
        sender_postal="1000001",
        sender_address="東京都千代田区千代田1-1",
        sender_phone="0312345678",
        item_name="サプリメント",
        package_type="ゆうパック",
    )


@pytest.fixture
def order():
    return OrderData(
        payment_id="pay_001",
        name="田中太郎",
        postal="104-0061",
        address="東京都中央区銀座7-8-8",
        email="test@example.com",
        phone="9012345678",
    )


def test_header_has_30_columns():
    assert len(JAPANPOST_HEADER) == 30
    assert "お届け先郵便番号" in JAPANPOST_HEADER

def test_row_has_30_columns(order, cfg):
    assert len(generate_row(order, cfg, SHIP_DATE)) == 30
    assert len(generate_row(OrderData(), cfg, "")) == 30

def test_recipient_columns(order, cfg):
    row = generate_row(order, cfg, SHIP_DATE)
    assert row[0] == "pay_001"
    assert row[1] == SHIP_DATE
    assert row[3] == "ゆうパック"
    assert row[4] == "田中太郎"
    assert row[5] == "様"
    assert row[6] == "1040061"
    assert row[7] == "東京都中央区銀座7-8-8"
    assert row[8] == ""
    assert row[10] == "09012345678"
    assert row[11] == "test@example.com"

def test_sender_columns(order, cfg):
    row = generate_row(order, cfg, SHIP_DATE)
    assert row[12] == "テストクリニック"
    assert row[13] == "1000001"
    assert row[14] == "東京都千代田区千代田1-1"
    assert row[15] == ""
    assert row[16] == "0312345678"
    assert row[17] == "サプリメント"

def test_sender_address_not_split(order):
    # 既定差出人 "…7-8-8 5F" の F で切らない
    row = generate_row(order, DEFAULT_SHIPPING_CONFIG.japanpost, SHIP_DATE)
    assert row[14] == "東京都中央区銀座7-8-8 5F"
    assert row[15] == ""

def test_prepaid_and_single_parcel(order, cfg):
    row = generate_row(order, cfg, SHIP_DATE)
    assert row[20] == "0"
    assert row[29] == "1"

def test_no_okinawa_override(order, cfg):
    row = generate_row(replace(order, address="沖縄県那覇市おもろまち1-2-3"), cfg, SHIP_DATE)
    assert row[17] == "サプリメント"

def test_csv_single(order, cfg):
    lines = generate_csv([order], cfg, SHIP_DATE).split("\r\n")
    assert len(lines) == 2
    assert "お届け先郵便番号" in lines[0]

def test_csv_multiple(order, cfg):
    second = replace(order, payment_id="pay_002", name="山田花子")
    lines = generate_csv([order, second], cfg, SHIP_DATE).split("\r\n")
    assert len(lines) == 3
    assert '"山田花子"' in lines[2]
