# app.py
# クリニック発送 送り状CSV出力 v1.0.0
# - ヤマトB2クラウド（55列）/ 日本郵便ゆうプリR（30列）の取込CSVを生成
# - 入力は JSON（items 配列）か 注文一覧 CSV/TSV のアップロード（ヘッダー欠落は 400）
# - /export は config 上書き後の defaultCarrier で出し分け
# - 発行済みCSV（伝票番号入り）を読み込んで注文と照合するプレビュー
# - 配送設定は SHIPPING_CONFIG_PATH の JSON を既定値にマージ（未設定なら既定値のみ）
# - / と /healthz に各モジュールのバージョンを表示

import json
import logging
import os
import re
from datetime import datetime
from io import BytesIO
from typing import List, NamedTuple
from zoneinfo import ZoneInfo

from flask import Flask, current_app, jsonify, render_template_string, request, send_file

from converters.address import __version__ as ADDRESS_VERSION
from services import japanpost, yamato_b2
from services.carrier_config import (
    ConfigError,
    DEFAULT_SHIPPING_CONFIG,
    ShippingConfig,
    load_shipping_config,
    load_shipping_config_file,
)
from services.models import OrderCsvError, OrderData, missing_fields, read_orders_csv
from services.tracking import (
    TrackingCsvError,
    decode_upload,
    format_tracking_number,
    match_tracking,
    parse_tracking_csv,
    tracking_url,
)
from utils.csvout import encode_csv, resolve_encoding
from utils.kana import engine_name
from utils.textnorm import __version__ as TEXTNORM_VERSION

VERSION = "v1.0.0"

logger = logging.getLogger(__name__)

_SHIP_DATE_RE = re.compile(r"^(\d{4})[/-](\d{1,2})[/-](\d{1,2})$")

INDEX_HTML = """
<!doctype html>
<html lang="ja">
<head>
  <meta charset="utf-8"/>
  <title>送り状CSV出力 ({{version}})</title>
  <style>
    body { font-family: system-ui, -apple-system, "Helvetica Neue", Arial, "Noto Sans JP", sans-serif; padding: 24px; }
    .card { max-width: 880px; margin: 0 auto; padding: 24px; border: 1px solid #ddd; border-radius: 12px; }
    h1 { font-size: 20px; margin-top: 0; }
    button { padding: 10px 16px; border: 0; border-radius: 8px; background: #0b6; color: #fff; font-weight: 600; cursor: pointer; }
    button.secondary { background: #06c; }
    .muted { color: #666; font-size: 12px; }
    .verbox { background: #f7f7f7; border: 1px solid #eee; border-radius: 8px; padding: 10px 12px; margin: 12px 0 0; }
    .grid { display: grid; grid-template-columns: 200px 1fr; gap: 6px 12px; align-items: baseline; }
    form { margin-bottom: 16px; }
  </style>
</head>
<body>
  <div class="card">
    <h1>送り状CSV出力</h1>

    <form method="post" action="/export/yamato-b2" enctype="multipart/form-data">
      <input type="file" name="file" accept=".csv,.tsv,text/csv" required />
      <div class="muted">注文一覧（payment_id, name, postal, address, email, phone）を選択してください。</div>
      <p><button type="submit">ヤマトB2 CSVをダウンロード</button></p>
    </form>

    <form method="post" action="/export/japanpost" enctype="multipart/form-data">
      <input type="file" name="file" accept=".csv,.tsv,text/csv" required />
      <p><button type="submit" class="secondary">ゆうプリR CSVをダウンロード</button></p>
    </form>

    <div class="verbox">
      <div class="grid">
        <div><strong>App</strong></div><div><code>{{version}}</code></div>
        <div>Default carrier</div><div><code>{{carrier}}</code></div>
        <div>Address</div><div><code>{{addr_ver}}</code></div>
        <div>Textnorm</div><div><code>{{txn_ver}}</code></div>
        <div>Yamato B2</div><div><code>{{yamato_ver}}</code></div>
        <div>Japan Post</div><div><code>{{japanpost_ver}}</code></div>
        <div>Kana</div><div><code>{{kana}}</code></div>
      </div>
    </div>
  </div>
</body>
</html>
"""


def _error(message, status=400):
    return jsonify({"error": message}), status


def _shipping_config() -> ShippingConfig:
    return current_app.config["SHIPPING_CONFIG"]


def _today(tz_name: str) -> str:
    return datetime.now(ZoneInfo(tz_name)).strftime("%Y/%m/%d")


def _parse_ship_date(value):
    """'YYYY/MM/DD' か 'YYYY-MM-DD' を 'YYYY/MM/DD' に揃える。不正なら None。"""
    m = _SHIP_DATE_RE.match((value or "").strip())
    if not m:
        return None
    try:
        d = datetime(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None
    return d.strftime("%Y/%m/%d")


class _ExportRequest(NamedTuple):
    orders: List[OrderData]
    ship_date: str
    config: ShippingConfig
    encoding: str


def _read_export_request():
    """JSON / multipart のどちらでも (_ExportRequest, None) か (None, エラー応答) を返す。"""
    base = _shipping_config()
    if request.is_json:
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return None, _error("リクエストのJSONが不正です")
        items = body.get("items")
        if not isinstance(items, list) or not items:
            return None, _error("itemsは1件以上必要です")
        for i, item in enumerate(items):
            if not isinstance(item, dict):
                return None, _error(f"items[{i}] の形式が不正です")
            missing = missing_fields(item)
            if missing:
                return None, _error(f"items[{i}] に必須項目がありません: {', '.join(missing)}")
        orders = [OrderData.from_mapping(it) for it in items]
        raw_date = body.get("ship_date")
        raw_config = body.get("config")
        encoding = body.get("encoding")
    else:
        f = request.files.get("file")
        if not f or not getattr(f, "filename", ""):
            return None, _error("CSV/TSVファイルが選択されていません。")
        try:
            orders = read_orders_csv(decode_upload(f.stream.read()))
        except OrderCsvError as e:
            return None, _error(str(e))
        if not orders:
            return None, _error("itemsは1件以上必要です")
        raw_date = request.form.get("ship_date")
        raw_config = request.form.get("config")
        encoding = request.form.get("encoding")

    if raw_date:
        ship_date = _parse_ship_date(raw_date)
        if ship_date is None:
            return None, _error("ship_date は YYYY/MM/DD 形式で指定してください")
    else:
        ship_date = _today(current_app.config["SHIPPING_TIMEZONE"])

    try:
        config = load_shipping_config(raw_config, base) if raw_config else base
    except ConfigError as e:
        return None, _error(str(e))

    encoding = resolve_encoding(encoding or current_app.config["SHIPPING_CSV_ENCODING"])
    return _ExportRequest(orders, ship_date, config, encoding), None


def _csv_response(csv_text, prefix, encoding):
    buf = BytesIO(encode_csv(csv_text, encoding))
    charset = "shift_jis" if encoding == "cp932" else "utf-8"
    filename = f"{prefix}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
    return send_file(
        buf,
        mimetype=f"text/csv; charset={charset}",
        as_attachment=True,
        download_name=filename,
        max_age=0,
        etag=False,
        conditional=False,
        last_modified=None,
    )


def _export(carrier=None):
    """carrier 未指定なら（リクエストの config 上書き後の）defaultCarrier。"""
    req, err = _read_export_request()
    if err is not None:
        return err
    carrier = carrier or req.config.default_carrier

    try:
        if carrier == "japanpost":
            text = japanpost.generate_csv(req.orders, req.config.japanpost, req.ship_date)
            prefix = "japanpost"
        else:
            text = yamato_b2.generate_csv(req.orders, req.ship_date, req.config.yamato)
            prefix = "yamato_b2"
    except Exception as e:
        logger.exception("csv export failed (carrier=%s)", carrier)
        return _error(f"変換に失敗しました: {e}", 500)

    logger.info("exported %d orders for %s", len(req.orders), carrier)
    return _csv_response(text, prefix, req.encoding)


def _module_versions():
    return dict(
        address=ADDRESS_VERSION,
        textnorm=TEXTNORM_VERSION,
        yamato_b2=yamato_b2.__version__,
        japanpost=japanpost.__version__,
        kana=engine_name(),
    )


def index():
    # ヘルスチェック対策：HEAD は中身なしで 200
    if request.method == "HEAD":
        return ("", 200)
    v = _module_versions()
    return render_template_string(
        INDEX_HTML,
        version=VERSION,
        carrier=_shipping_config().default_carrier,
        addr_ver=v["address"],
        txn_ver=v["textnorm"],
        yamato_ver=v["yamato_b2"],
        japanpost_ver=v["japanpost"],
        kana=v["kana"],
    )


def healthz():
    info = dict(ok=True, app=VERSION, default_carrier=_shipping_config().default_carrier)
    info.update(_module_versions())
    return jsonify(info), 200


def export_default():
    return _export()


def export_yamato_b2():
    return _export("yamato")


def export_japanpost():
    return _export("japanpost")


def tracking_preview():
    f = request.files.get("file")
    if not f or not getattr(f, "filename", ""):
        return _error("CSVファイルが選択されていません")

    known = {}
    raw_orders = request.form.get("orders")
    if raw_orders:
        try:
            known = json.loads(raw_orders)
        except ValueError:
            return _error("orders のJSONが不正です")
        if not isinstance(known, dict):
            return _error("orders は payment_id → 氏名 のオブジェクトで指定してください")

    try:
        rows = parse_tracking_csv(decode_upload(f.stream.read()))
    except TrackingCsvError as e:
        return _error(str(e))

    return jsonify(match_tracking(rows, known).to_dict()), 200


def tracking_link():
    carrier = request.args.get("carrier", "yamato")
    number = request.args.get("number", "")
    if not number:
        return _error("number を指定してください")
    return jsonify(url=tracking_url(carrier, number), number=format_tracking_number(number)), 200


def create_app(shipping_config=None):
    """
    shipping_config 未指定時は SHIPPING_CONFIG_PATH の JSON を DEFAULT_SHIPPING_CONFIG にマージ。
    """
    app = Flask(__name__)
    if shipping_config is None:
        shipping_config = load_shipping_config_file(
            os.environ.get("SHIPPING_CONFIG_PATH"), DEFAULT_SHIPPING_CONFIG
        )
    app.config["SHIPPING_CONFIG"] = shipping_config
    app.config["SHIPPING_CSV_ENCODING"] = os.environ.get("SHIPPING_CSV_ENCODING", "utf-8")
    app.config["SHIPPING_TIMEZONE"] = os.environ.get("SHIPPING_TIMEZONE", "Asia/Tokyo")

    app.add_url_rule("/", view_func=index, methods=["GET", "HEAD"])
    app.add_url_rule("/healthz", view_func=healthz)
    app.add_url_rule("/export", view_func=export_default, methods=["POST"])
    app.add_url_rule("/export/yamato-b2", view_func=export_yamato_b2, methods=["POST"])
    app.add_url_rule("/export/japanpost", view_func=export_japanpost, methods=["POST"])
    app.add_url_rule("/tracking/preview", view_func=tracking_preview, methods=["POST"])
    app.add_url_rule("/tracking/url", view_func=tracking_link)
    return app


app = create_app()

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    # Render 用: PORT が指定される前提だが、ローカル用にデフォルト 8000
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", "8000")), debug=False)
