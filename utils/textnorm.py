# utils/textnorm.py
# v2.0
# - 送り状CSV向けの正規化（電話・郵便番号・空白・ダッシュ）
# - 数字判定は ASCII の 0-9 のみ（全角数字は数字扱いしない）
# - どの関数も例外を投げず、空入力は空文字を返す

from __future__ import annotations

import re
from typing import Optional

__version__ = "v2.0"

# ---------------------------------------------------------------------
# 空白・ダッシュ
# ---------------------------------------------------------------------
_WS_RE = re.compile(r"\s+")  # 全角スペース(U+3000)も含む

# ハイフン類（‐ ‑ ‒ – — ― − ﹣ －）は常に半角へ
_DASH_CHARS = "‐‑‒–—―−﹣－"
_DASH_RE = re.compile(f"[{_DASH_CHARS}]")

# 長音（ー ｰ）は数字の直後のときだけ番地のハイフンとみなす
_CHOON_RE = re.compile(r"(?<=[0-9０-９])[ーｰ]")


def collapse_spaces(s: Optional[str]) -> str:
    """全角スペース・連続空白を半角スペース1個にまとめ、前後を trim。"""
    if not s:
        return ""
    return _WS_RE.sub(" ", str(s)).strip()


def normalize_dashes(s: Optional[str]) -> str:
    """
    住所中のダッシュ類を半角 '-' に寄せる。
    例: '銀座7ー8ー8' → '銀座7-8-8' / 'タワー' はそのまま
    """
    if not s:
        return ""
    txt = _DASH_RE.sub("-", str(s))
    return _CHOON_RE.sub("-", txt)


# ---------------------------------------------------------------------
# 郵便番号
# ---------------------------------------------------------------------
_NON_DIGIT_RE = re.compile(r"[^0-9]")


def normalize_postal(s: Optional[str]) -> str:
    """
    郵便番号を数字7桁に整える（ハイフンなし）。
    - 8桁以上は末尾7桁を採用（前置きの連結対策）
    - 7桁未満は左ゼロ埋め（先頭0欠落対策）
    - 数字が無ければ空文字
    """
    if not s:
        return ""
    d = _NON_DIGIT_RE.sub("", str(s))
    if not d:
        return ""
    if len(d) > 7:
        d = d[-7:]
    return d.zfill(7)


# ---------------------------------------------------------------------
# 電話番号
# ---------------------------------------------------------------------
# 表計算ソフト経由で先頭0が落ちた 070/080/090/03 だけを補完する。
# それ以外の市外局番は補完しない（誤補完を避ける）。
_PHONE_STRIP_RE = re.compile(r"[^0-9\-]")
_HYPHEN_PREFIXES = ("80-", "90-", "70-", "3-")
_DIGIT_PREFIXES = ("80", "90", "70", "3")


def normalize_phone(s: Optional[str]) -> str:
    """数字とハイフンのみを残し、先頭0の欠落を補う。"""
    if not s:
        return ""
    t = _PHONE_STRIP_RE.sub("", str(s))

    if t.startswith(_HYPHEN_PREFIXES):
        return "0" + t

    if t.isdigit() and t.startswith(_DIGIT_PREFIXES):
        return "0" + t

    return t


__all__ = [
    "__version__",
    "collapse_spaces",
    "normalize_dashes",
    "normalize_postal",
    "normalize_phone",
]
