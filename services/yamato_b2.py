# services/yamato_b2.py
# ヤマトB2クラウド（データ交換規約）CSV 55列
#
# - 列の数と順序は B2 側の取込レイアウトで固定（変更不可）
# - 電話は先頭0補完、郵便番号は7桁、住所は「町番地 / アパマン」に分割
# - 沖縄宛は品名を固定文言に差し替え（地域の輸送制限）
# - お届け完了メールは notify_completed のときだけ利用

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from converters.address import AddressSplitter, DEFAULT_SPLITTER
from services.carrier_config import YamatoConfig
from services.models import OrderData
from utils.csvout import assemble_csv
from utils.kana import to_hankaku_kana
from utils.textnorm import normalize_phone, normalize_postal

logger = logging.getLogger(__name__)

__version__ = "v1.0"

COLUMN_COUNT = 55
OKINAWA_ITEM_NAME = "医薬品・注射器（未使用、引火性・高圧ガスなし）"

YAMATO_B2_HEADER: List[str] = [
    "お客様管理番号", "送り状種類", "クール区分", "伝票番号", "出荷予定日",
    "お届け予定（指定）日", "配達時間帯", "お届け先コード", "お届け先電話番号", "お届け先電話番号枝番",
    "お届け先郵便番号", "お届け先住所", "お届け先住所（アパマン）", "お届け先会社部門1", "お届け先会社部門2",
    "お届け先名", "お届け先名略称カナ", "敬称", "ご依頼主コード", "ご依頼主電話番号",
    "ご依頼主電話番号枝番", "ご依頼主郵便番号", "ご依頼主住所", "ご依頼主住所（アパマン）", "ご依頼主名",
    "ご依頼主略称カナ", "品名コード1", "品名1", "品名コード2", "品名2",
    "荷扱い1", "荷扱い2", "記事", "コレクト代金引換額（税込）", "コレクト内消費税額等",
    "営業所止置き", "営業所コード", "発行枚数", "個数口枠の印字", "ご請求先顧客コード",
    "ご請求先分類コード", "運賃管理番号", "クロネコwebコレクトデータ登録", "webコレクト加盟店コード", "webコレクト申込受付番号1",
    "webコレクト申込受付番号2", "webコレクト申込受付番号3", "お届け予定eメール利用区分", "お届け予定eメールアドレス", "入力機種",
    "お届け予定eメールメッセージ", "お届け完了eメール利用区分", "お届け完了eメールアドレス", "お届け完了eメールメッセージ", "クロネコ収納代行利用区分",
]


def is_okinawa(address: str) -> bool:
    return "沖縄" in (address or "")


def generate_row(
    order: OrderData,
    ship_date: str,
    config: YamatoConfig,
    *,
    splitter: Optional[AddressSplitter] = None,
) -> List[str]:
    """注文1件 → B2 の55列。"""
    splitter = splitter or DEFAULT_SPLITTER
    name = order.name.strip()
    address_full = order.address.strip()
    addr1, addr2 = splitter.split(address_full)

    item_name = OKINAWA_ITEM_NAME if is_okinawa(address_full) else config.item_name
    kana = to_hankaku_kana(name) if config.fill_recipient_kana else ""

    if config.notify_completed:
        completed = ["1", config.sender_email, config.completed_message]
    else:
        completed = ["0", "", ""]

    cols: List[str] = [
        order.payment_id or "",                  # 1 お客様管理番号
        "0",                                     # 2 送り状種類（発払い）
        config.cool_type or "2",                 # 3 クール区分
        "",                                      # 4 伝票番号
        ship_date,                               # 5 出荷予定日
        "",                                      # 6 お届け予定（指定）日
        "",                                      # 7 配達時間帯
        "",                                      # 8 お届け先コード
        normalize_phone(order.phone),            # 9 お届け先電話番号
        "",                                      # 10 お届け先電話番号枝番
        normalize_postal(order.postal),          # 11 お届け先郵便番号
        addr1,                                   # 12 お届け先住所（町番地）
        addr2,                                   # 13 お届け先住所（アパマン）
        "",                                      # 14 お届け先会社部門1
        "",                                      # 15 お届け先会社部門2
        name,                                    # 16 お届け先名
        kana,                                    # 17 お届け先名略称カナ
        "様",                                    # 18 敬称
        "",                                      # 19 ご依頼主コード
        normalize_phone(config.sender_phone),    # 20 ご依頼主電話番号
        config.sender_phone_branch,              # 21 ご依頼主電話番号枝番
        config.sender_postal,                    # 22 ご依頼主郵便番号
        config.sender_address,                   # 23 ご依頼主住所
        "",                                      # 24 ご依頼主住所（アパマン）
        config.sender_name,                      # 25 ご依頼主名
        "",                                      # 26 ご依頼主略称カナ
        "",                                      # 27 品名コード1
        item_name,                               # 28 品名1
        "",                                      # 29 品名コード2
        "",                                      # 30 品名2
        "",                                      # 31 荷扱い1
        "",                                      # 32 荷扱い2
        "",                                      # 33 記事
        "",                                      # 34 コレクト代金引換額（税込）
        "",                                      # 35 コレクト内消費税額等
        "0",                                     # 36 営業所止置き
        "",                                      # 37 営業所コード
        "1",                                     # 38 発行枚数
        "1",                                     # 39 個数口枠の印字
        config.billing_customer_code,            # 40 ご請求先顧客コード
        config.billing_category_code,            # 41 ご請求先分類コード
        config.fare_management_no,               # 42 運賃管理番号
        "0",                                     # 43 クロネコwebコレクトデータ登録
        "",                                      # 44 webコレクト加盟店コード
        "",                                      # 45 webコレクト申込受付番号1
        "",                                      # 46 webコレクト申込受付番号2
        "",                                      # 47 webコレクト申込受付番号3
        "1",                                     # 48 お届け予定eメール利用区分
        order.email.strip(),                     # 49 お届け予定eメールアドレス
        "1",                                     # 50 入力機種
        config.forecast_message,                 # 51 お届け予定eメールメッセージ
        *completed,                              # 52-54 お届け完了eメール
        "0",                                     # 55 クロネコ収納代行利用区分
    ]
    return cols


def generate_csv(
    orders: Iterable[OrderData],
    ship_date: str,
    config: YamatoConfig,
    *,
    splitter: Optional[AddressSplitter] = None,
) -> str:
    """ヘッダー + 注文順の行で CSV 文字列を作る。"""
    rows = [generate_row(o, ship_date, config, splitter=splitter) for o in orders]
    logger.info("yamato b2 csv: %d rows, ship_date=%s", len(rows), ship_date)
    return assemble_csv(YAMATO_B2_HEADER, rows)
