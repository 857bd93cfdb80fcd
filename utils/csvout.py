# utils/csvout.py
# 送り状CSVの組み立て
# - 全フィールドをダブルクォートで囲む（" は "" にエスケープ）
# - 行区切りは CRLF（B2クラウド / ゆうプリR は Windows 前提）
# - 取込側（注文一覧・発行済みCSV）の区切りは csv.Sniffer で推定

from __future__ import annotations

import csv
import io
from typing import Iterable, Optional, Sequence

__version__ = "v1.0"

CRLF = "\r\n"

# cp932 に無い文字は "?" に置換（取込ツール側で弾かれないように）
_ENCODING_ALIASES = {
    "utf8": "utf-8",
    "utf-8": "utf-8",
    "utf-8-sig": "utf-8-sig",
    "sjis": "cp932",
    "shift_jis": "cp932",
    "cp932": "cp932",
}


def _write_rows(rows: Iterable[Sequence[Optional[object]]]) -> str:
    out = io.StringIO()
    w = csv.writer(out, lineterminator=CRLF, quoting=csv.QUOTE_ALL)
    w.writerows(rows)
    text = out.getvalue()
    # 最終行の CRLF は付けない
    return text[: -len(CRLF)] if text.endswith(CRLF) else text


def to_csv_row(cols: Sequence[Optional[object]]) -> str:
    return _write_rows([cols])


def assemble_csv(header: Sequence[str], rows: Iterable[Sequence[Optional[object]]]) -> str:
    """ヘッダー + データ行を CRLF 連結（末尾改行なし）。"""
    return _write_rows([header, *rows])


def sniff_delimiter(sample: str) -> str:
    """カンマ/タブを推定。判定できなければカンマ。"""
    try:
        return csv.Sniffer().sniff(sample[:4096], delimiters=[",", "\t"]).delimiter
    except csv.Error:
        return ","


def resolve_encoding(name: Optional[str]) -> str:
    """未知の指定は utf-8 扱い。"""
    return _ENCODING_ALIASES.get((name or "").strip().lower(), "utf-8")


def encode_csv(text: str, encoding: Optional[str] = None) -> bytes:
    enc = resolve_encoding(encoding)
    if enc == "cp932":
        return text.encode(enc, errors="replace")
    return text.encode(enc)


__all__ = [
    "__version__",
    "CRLF",
    "to_csv_row",
    "assemble_csv",
    "sniff_delimiter",
    "resolve_encoding",
    "encode_csv",
]
