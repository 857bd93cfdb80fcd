# utils/kana.py
# お届け先名略称カナ（推測）モジュール v2.0
# - FURIGANA_ENABLED="1" で有効（デフォルト有効）
# - 読みは pykakasi、半角カナ化は jaconv
# - B2 の略称カナ欄は半角50文字まで

from __future__ import annotations

import os
import re
from functools import lru_cache

import jaconv
import pykakasi

__version__ = "v2.0"

KANA_MAX_LEN = 50

_RE_HAS_JA = re.compile(r"[一-龠ぁ-んァ-ヶｱ-ﾝー々〆ヵヶ]")
_RE_SPACES = re.compile(r"[\s　]+")
_VOICED_MARKS = ("ﾞ", "ﾟ")


def furigana_enabled() -> bool:
    return os.environ.get("FURIGANA_ENABLED", "1") == "1"


@lru_cache(maxsize=1)
def _kakasi():
    return pykakasi.kakasi()


def to_katakana_guess(s: str) -> str:
    """漢字かな混じりの名前 → 全角カタカナ（読めない/無効時は空）。"""
    if not s or not furigana_enabled():
        return ""
    if not _RE_HAS_JA.search(s):
        return ""
    parts = _kakasi().convert(s)
    hira = "".join(p.get("hira", "") for p in parts)
    return jaconv.hira2kata(hira)


def to_hankaku_kana(s: str, max_len: int = KANA_MAX_LEN) -> str:
    """名前の読みを半角カナで返す（スペースは除去、max_len で切り詰め）。"""
    kata = to_katakana_guess(_RE_SPACES.sub("", s or ""))
    if not kata:
        return ""
    han = jaconv.z2h(kata, kana=True, ascii=False, digit=False)
    if len(han) <= max_len:
        return han
    cut = han[:max_len]
    # 濁点・半濁点の手前で切れたら基字ごと落とす
    if han[max_len] in _VOICED_MARKS:
        cut = cut[:-1]
    return cut


def engine_name() -> str:
    return "pykakasi" if furigana_enabled() else "disabled"
