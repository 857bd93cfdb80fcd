# services/tracking.py
# 追跡番号まわり
# - キャリア別の追跡URL・12桁番号の整形
# - B2 / ゆうプリR の発行済みCSV（お客様管理番号 + 伝票番号）を読んで注文と照合
#   - UTF-8(BOM可) / Shift_JIS、カンマ/タブ自動判定
#   - 合箱：お客様管理番号セルがカンマ区切りなら注文ごとに展開

from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional
from urllib.parse import quote

from utils.csvout import sniff_delimiter

logger = logging.getLogger(__name__)

__version__ = "v1.0"

_YAMATO_URL = "https://member.kms.kuronekoyamato.co.jp/parcel/detail?pno={}"
_JAPANPOST_URL = "https://trackings.post.japanpost.jp/services/srv/search/direct?reqCodeNo1={}"

# 照合キー列（先頭が B2、後ろはゆうプリRの列名）
PAYMENT_ID_COLUMNS = ("お客様管理番号", "お客様側管理番号")
TRACKING_COLUMNS = ("伝票番号", "お問い合わせ番号")

_NON_DIGIT_RE = re.compile(r"[^0-9]")
_NON_ALNUM_RE = re.compile(r"[^0-9A-Za-z]")
_COMBINED_SEP_RE = re.compile(r"[,、，]")


class TrackingCsvError(ValueError):
    """取込CSVが空・必須カラム欠落など。"""


@dataclass(frozen=True)
class TrackingRow:
    payment_id: str
    tracking_number: str


@dataclass
class TrackingEntry:
    payment_id: str
    tracking_number: str
    matched: bool
    patient_name: str = ""

    def to_dict(self) -> Dict[str, object]:
        return {
            "payment_id": self.payment_id,
            "tracking_number": self.tracking_number,
            "matched": self.matched,
            "patient_name": self.patient_name,
        }


@dataclass
class TrackingPreview:
    entries: List[TrackingEntry] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def summary(self) -> Dict[str, int]:
        found = sum(1 for e in self.entries if e.matched)
        return {"total": len(self.entries), "found": found, "notFound": len(self.entries) - found}

    def to_dict(self) -> Dict[str, object]:
        return {
            "entries": [e.to_dict() for e in self.entries],
            "summary": self.summary,
            "errors": list(self.errors),
        }


# ========== URL / 表示 ==========

def tracking_url(carrier: str, number: str) -> str:
    """
    区切り（ハイフン・空白）を除いて URL に埋め込む。不明キャリアはヤマト扱い。
    ゆうパケット等の英字入り番号（JP1234567890）があるので郵便は英数字を残す。
    """
    if carrier == "japanpost":
        return _JAPANPOST_URL.format(quote(_NON_ALNUM_RE.sub("", number or "")))
    return _YAMATO_URL.format(quote(_NON_DIGIT_RE.sub("", number or "")))


def format_tracking_number(num: str) -> str:
    """12桁なら XXXX-XXXX-XXXX、それ以外は入力のまま。"""
    digits = _NON_DIGIT_RE.sub("", num or "")
    if len(digits) == 12:
        return f"{digits[0:4]}-{digits[4:8]}-{digits[8:12]}"
    return num


# ========== 取込CSV ==========

def decode_upload(data: bytes) -> str:
    """BOM を除いて UTF-8、だめなら Shift_JIS(cp932) で読む。"""
    if data.startswith(b"\xef\xbb\xbf"):
        return data[3:].decode("utf-8", errors="replace")
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("cp932", errors="replace")


def _find_column(header: List[str], candidates) -> int:
    for name in candidates:
        if name in header:
            return header.index(name)
    return -1


def parse_tracking_csv(text: str) -> List[TrackingRow]:
    """お客様管理番号・伝票番号の組を取り出す（空行・空値はスキップ）。"""
    text = (text or "").lstrip("\ufeff")
    lines = [ln for ln in text.splitlines() if ln.strip()]
    if len(lines) < 2:
        raise TrackingCsvError("CSVにデータ行がありません")

    body = "\n".join(lines)
    reader = csv.reader(io.StringIO(body), delimiter=sniff_delimiter(body))
    rows = list(reader)
    header = [h.strip().strip('"') for h in rows[0]]

    pi = _find_column(header, PAYMENT_ID_COLUMNS)
    ti = _find_column(header, TRACKING_COLUMNS)
    if pi < 0 or ti < 0:
        raise TrackingCsvError("必須カラム（お客様管理番号・伝票番号）がCSVにありません")

    out: List[TrackingRow] = []
    for r in rows[1:]:
        if len(r) <= max(pi, ti):
            continue
        raw_pid = r[pi].strip()
        tn = r[ti].strip()
        if not raw_pid or not tn:
            continue
        for pid in _COMBINED_SEP_RE.split(raw_pid):
            pid = pid.strip()
            if pid:
                out.append(TrackingRow(pid, tn))
    return out


def match_tracking(rows: List[TrackingRow], known: Optional[Mapping[str, str]] = None) -> TrackingPreview:
    """
    known: payment_id → 患者名。含まれない payment_id は未照合として errors に積む。
    """
    known = known or {}
    preview = TrackingPreview()
    for row in rows:
        if row.payment_id in known:
            preview.entries.append(
                TrackingEntry(row.payment_id, row.tracking_number, True, known[row.payment_id] or "")
            )
        else:
            preview.entries.append(TrackingEntry(row.payment_id, row.tracking_number, False))
            preview.errors.append(f"注文が見つかりません: {row.payment_id}（伝票番号 {row.tracking_number}）")
    if preview.errors:
        logger.warning("tracking preview: %d unmatched of %d", len(preview.errors), len(rows))
    return preview
