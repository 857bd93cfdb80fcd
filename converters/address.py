# converters/address.py
# 送り状用の住所分割（住所1=町・番地 / 住所2=建物・部屋）
from __future__ import annotations

import re
from typing import NamedTuple, Protocol

from utils.textnorm import collapse_spaces, normalize_dashes

__version__ = "v2.0.0"
__meta__ = {
    "strategy": "marker-token-first+numeric-block",
    "notes": [
        "space/dash normalize → split",
        "first building/room marker wins",
        "digit-leading tail is folded back into addr1",
    ],
}

# ===== 設定 =====

# 建物・部屋側の始まりになりやすい語（最初に出現した位置で切る）
MARKER_TOKENS = [
    "号室", "室", "階", "Ｆ", "F", "棟", "寮",
    "ビル", "マンション", "アパート", "ハイツ", "メゾン", "レジデンス", "タワー", "コーポ",
]

_MARKER_RE = re.compile("|".join(re.escape(t) for t in MARKER_TOKENS))
_FIRST_DIGIT_RE = re.compile(r"[0-9]")
# 1丁目2番地3号-4-5 のような番地ブロック（各部品は省略可）
_BLOCK_RE = re.compile(r"[0-9]+(?:丁目)?(?:[0-9]+)?(?:番地)?(?:[0-9]+)?(?:号)?(?:-[0-9]+)*")


class SplitAddress(NamedTuple):
    addr1: str
    addr2: str


class AddressSplitter(Protocol):
    """住所分割ストラテジ。別実装（住所辞書ベース等）に差し替え可能。"""

    def split(self, raw: str) -> SplitAddress: ...


def _normalize(addr: str) -> str:
    return normalize_dashes(collapse_spaces(addr))


class MarkerBlockSplitter:
    """
    二段階ヒューリスティック:
      1) 建物/部屋マーカー語の最初の出現位置で二分
      2) 無ければ最初の数字から番地ブロックを取り、残りが非数字始まりなら住所2へ
    分割できないときは (全文, "")。例外は投げない。
    """

    def split(self, raw: str) -> SplitAddress:
        s = _normalize(raw or "")
        if not s:
            return SplitAddress("", "")

        m = _MARKER_RE.search(s)
        if m:
            left = s[: m.start()].strip()
            right = s[m.start():].strip()
            if not left:
                return SplitAddress(s, "")
            return SplitAddress(left, right)

        d = _FIRST_DIGIT_RE.search(s)
        if not d:
            return SplitAddress(s, "")

        block = _BLOCK_RE.match(s, d.start())
        end = block.end()
        left = s[:end].strip()
        tail = s[end:].strip()

        if not tail:
            return SplitAddress(left, "")
        # 非数字始まり → 建物名側
        if not _FIRST_DIGIT_RE.match(tail):
            return SplitAddress(left, tail)
        # 数字始まりは番地の取りこぼしの可能性が高いので分割しない
        return SplitAddress((left + tail).strip(), "")


DEFAULT_SPLITTER: AddressSplitter = MarkerBlockSplitter()


def split_address(addr: str) -> SplitAddress:
    """既定ストラテジで住所を (addr1, addr2) に分割。"""
    return DEFAULT_SPLITTER.split(addr)
