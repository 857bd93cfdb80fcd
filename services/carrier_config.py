# services/carrier_config.py
# 配送設定（差出人・請求先・メール文面）
# - 保存形式はテナント設定の JSON（camelCase キー: defaultCarrier / yamato.* / japanpost.*）
# - 未設定キーは defaults で補完（呼び出し側が defaults を明示的に渡す）
# - フォーマッタは設定を読むだけで書き換えない（frozen dataclass）

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Union

logger = logging.getLogger(__name__)

__version__ = "v1.0"

CARRIERS = ("yamato", "japanpost")


class ConfigError(ValueError):
    """配送設定 JSON が読めない・形式が不正。"""


def _key(name: str) -> Dict[str, str]:
    return {"key": name}


@dataclass(frozen=True)
class YamatoConfig:
    sender_name: str = field(default="", metadata=_key("senderName"))
    sender_postal: str = field(default="", metadata=_key("senderPostal"))
    sender_address: str = field(default="", metadata=_key("senderAddress"))
    sender_phone: str = field(default="", metadata=_key("senderPhone"))
    sender_phone_branch: str = field(default="", metadata=_key("senderPhoneBranch"))
    sender_email: str = field(default="", metadata=_key("senderEmail"))
    billing_customer_code: str = field(default="", metadata=_key("billingCustomerCode"))
    billing_category_code: str = field(default="", metadata=_key("billingCategoryCode"))
    fare_management_no: str = field(default="", metadata=_key("fareManagementNo"))
    item_name: str = field(default="", metadata=_key("itemName"))
    cool_type: str = field(default="2", metadata=_key("coolType"))  # 0=常温, 1=冷蔵, 2=冷凍
    forecast_message: str = field(default="", metadata=_key("forecastMessage"))
    completed_message: str = field(default="", metadata=_key("completedMessage"))
    notify_completed: bool = field(default=False, metadata=_key("notifyCompleted"))
    fill_recipient_kana: bool = field(default=False, metadata=_key("fillRecipientKana"))


@dataclass(frozen=True)
class JapanPostConfig:
    sender_name: str = field(default="", metadata=_key("senderName"))
    sender_postal: str = field(default="", metadata=_key("senderPostal"))
    sender_address: str = field(default="", metadata=_key("senderAddress"))
    sender_phone: str = field(default="", metadata=_key("senderPhone"))
    item_name: str = field(default="", metadata=_key("itemName"))
    package_type: str = field(default="ゆうパック", metadata=_key("packageType"))  # ゆうパック / ゆうパケット / レターパック


@dataclass(frozen=True)
class ShippingConfig:
    default_carrier: str = "yamato"
    yamato: YamatoConfig = field(default_factory=YamatoConfig)
    japanpost: JapanPostConfig = field(default_factory=JapanPostConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "defaultCarrier": self.default_carrier,
            "yamato": _section_to_dict(self.yamato),
            "japanpost": _section_to_dict(self.japanpost),
        }


# DB未設定時のフォールバック（サンプル差出人）
DEFAULT_SHIPPING_CONFIG = ShippingConfig(
    default_carrier="yamato",
    yamato=YamatoConfig(
        sender_name="さくら皮フ科クリニック",
        sender_postal="1040061",
        sender_address="東京都中央区銀座7-8-8 5F",
        sender_phone="0312345678",
        sender_phone_branch="01",
        sender_email="shipping@example.com",
        billing_customer_code="031234567801",
        billing_category_code="",
        fare_management_no="01",
        item_name="サプリメント（引火性・高圧ガスなし）",
        cool_type="2",
        forecast_message="さくら皮フ科クリニックです。お荷物のお届け予定をお知らせします。",
        completed_message="さくら皮フ科クリニックです。お荷物の配達完了をお知らせします。",
    ),
    japanpost=JapanPostConfig(
        sender_name="さくら皮フ科クリニック",
        sender_postal="1040061",
        sender_address="東京都中央区銀座7-8-8 5F",
        sender_phone="0312345678",
        item_name="サプリメント",
        package_type="ゆうパック",
    ),
)


# ===== 変換 =====

def _section_to_dict(section: Any) -> Dict[str, Any]:
    return {f.metadata["key"]: getattr(section, f.name) for f in fields(section)}


def _as_bool(v: Any) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "on")
    return bool(v)


def _merge_section(base: Any, stored: Any) -> Any:
    """stored（camelCase dict）を base に上書き。None と未知キーは無視。"""
    if not isinstance(stored, Mapping):
        return base
    changes: Dict[str, Any] = {}
    for f in fields(base):
        key = f.metadata["key"]
        if key not in stored or stored[key] is None:
            continue
        v = stored[key]
        changes[f.name] = _as_bool(v) if isinstance(f.default, bool) else str(v)
    return replace(base, **changes)


def load_shipping_config(
    raw: Union[Mapping[str, Any], str, bytes, None],
    defaults: ShippingConfig,
) -> ShippingConfig:
    """
    保存済み設定（dict か JSON 文字列）を defaults にマージして返す。
    raw が None/空なら defaults をそのまま返す。
    """
    if raw is None or raw == "" or raw == b"":
        return defaults

    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise ConfigError(f"配送設定のJSONが不正です: {e}") from e
    else:
        data = raw

    if not isinstance(data, Mapping):
        raise ConfigError("配送設定はオブジェクト形式である必要があります")

    carrier = data.get("defaultCarrier", defaults.default_carrier)
    if carrier not in CARRIERS:
        logger.warning("unknown defaultCarrier %r, using %s", carrier, defaults.default_carrier)
        carrier = defaults.default_carrier

    return ShippingConfig(
        default_carrier=carrier,
        yamato=_merge_section(defaults.yamato, data.get("yamato")),
        japanpost=_merge_section(defaults.japanpost, data.get("japanpost")),
    )


def load_shipping_config_file(path: Union[str, Path, None], defaults: ShippingConfig) -> ShippingConfig:
    """JSON ファイルから読込。path 未指定・不存在なら defaults。"""
    if not path:
        return defaults
    p = Path(path)
    if not p.is_file():
        logger.warning("shipping config %s not found, using defaults", p)
        return defaults
    return load_shipping_config(p.read_text(encoding="utf-8"), defaults)
