# services/japanpost.py
# 日本郵便「ゆうプリR」外部データ取込 CSV 30列
# - 正規化・住所分割はヤマトと共通
# - 沖縄宛の品名差し替えはヤマトのみ（こちらには入れない）

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from converters.address import AddressSplitter, DEFAULT_SPLITTER
from services.carrier_config import JapanPostConfig
from services.models import OrderData
from utils.csvout import assemble_csv
from utils.textnorm import normalize_phone, normalize_postal

logger = logging.getLogger(__name__)

__version__ = "v1.0"

COLUMN_COUNT = 30

JAPANPOST_HEADER: List[str] = [
    "お客様側管理番号", "発送予定日", "発送予定時間帯", "郵便種別", "お届け先名称",
    "お届け先敬称", "お届け先郵便番号", "お届け先住所1", "お届け先住所2", "お届け先住所3",
    "お届け先電話番号", "お届け先メールアドレス", "ご依頼主名称", "ご依頼主郵便番号", "ご依頼主住所1",
    "ご依頼主住所2", "ご依頼主電話番号", "品名", "お届け希望日", "お届け希望時間帯",
    "着払い", "代引き", "代引き金額", "損害要償額", "こわれもの",
    "なまもの", "ビン類", "逆さま厳禁", "下積み厳禁", "個数",
]


def generate_row(
    order: OrderData,
    config: JapanPostConfig,
    ship_date: str,
    *,
    splitter: Optional[AddressSplitter] = None,
) -> List[str]:
    splitter = splitter or DEFAULT_SPLITTER
    addr1, addr2 = splitter.split(order.address.strip())

    return [
        order.payment_id or "",
        ship_date,
        "",
        config.package_type,
        order.name.strip(),
        "様",
        normalize_postal(order.postal),
        addr1,
        addr2,
        "",
        normalize_phone(order.phone),
        order.email.strip(),
        config.sender_name,
        normalize_postal(config.sender_postal),
        config.sender_address,  # 差出人住所は設定値のまま（分割しない）
        "",
        normalize_phone(config.sender_phone),
        config.item_name,
        "",
        "",
        "0",  # 元払い
        "0",
        "",
        "",
        "0",
        "0",
        "0",
        "0",
        "0",
        "1",
    ]


def generate_csv(
    orders: Iterable[OrderData],
    config: JapanPostConfig,
    ship_date: str,
    *,
    splitter: Optional[AddressSplitter] = None,
) -> str:
    rows = [generate_row(o, config, ship_date, splitter=splitter) for o in orders]
    logger.info("japanpost csv: %d rows, ship_date=%s", len(rows), ship_date)
    return assemble_csv(JAPANPOST_HEADER, rows)
