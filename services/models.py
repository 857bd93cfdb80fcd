# services/models.py
# 送り状CSVの入力となる注文スナップショット

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Mapping

from utils.csvout import sniff_delimiter

ORDER_FIELDS = ("payment_id", "name", "postal", "address", "email", "phone")


@dataclass(frozen=True)
class OrderData:
    payment_id: str = ""
    name: str = ""
    postal: str = ""
    address: str = ""
    email: str = ""
    phone: str = ""

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "OrderData":
        """dict / CSV 行から生成。欠損・None は空文字。"""
        values = {}
        for f in fields(cls):
            v = row.get(f.name)
            values[f.name] = "" if v is None else str(v)
        return cls(**values)


def _clean_key(k: str) -> str:
    return (k or "").lstrip("\ufeff").strip()


def _clean_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    return {_clean_key(k): v for k, v in row.items() if k is not None}


def missing_fields(item: Mapping[str, Any]) -> List[str]:
    """必須キーの欠落（値が空文字なのは許容）。"""
    return [k for k in ORDER_FIELDS if k not in item]


class OrderCsvError(ValueError):
    """注文一覧のヘッダーに必須カラムが無い。"""

    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__(f"注文CSVに必須カラムがありません: {', '.join(missing)}")


def read_orders_csv(text: str) -> List[OrderData]:
    """ORDER_FIELDS をヘッダーに持つ注文一覧 CSV/TSV を読む。欠けていれば OrderCsvError。"""
    text = (text or "").lstrip("\ufeff")
    reader = csv.DictReader(io.StringIO(text), delimiter=sniff_delimiter(text))
    reader.fieldnames = [_clean_key(h) for h in (reader.fieldnames or [])]
    missing = [k for k in ORDER_FIELDS if k not in reader.fieldnames]
    if missing:
        raise OrderCsvError(missing)
    return [OrderData.from_mapping(_clean_row(r)) for r in reader]
