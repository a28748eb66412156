# watermarker/server.py
"""
HTTP 接口
- POST /api/watermark:multipart 上传 photo(必填)与 watermarkImage(可选),其余为表单参数
- GET  /healthz:健康检查

只负责解析请求和映射错误,合成逻辑全部在 watermarker.pipeline 中。
"""
import concurrent.futures
import logging

from flask import Flask, Response, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge

from watermarker.config import ServerConfig, configure_logging
from watermarker.errors import Cancelled, InvalidInput, WatermarkError
from watermarker.options import RequestOptions
from watermarker.worker import CompositePool

logger = logging.getLogger(__name__)


def _error(err: WatermarkError):
    return jsonify(err.to_dict()), err.status


def _read_file(name):
    storage = request.files.get(name)
    if storage is None:
        return None
    data = storage.read()
    return data or None


def create_app(config: ServerConfig = None, pool: CompositePool = None) -> Flask:
    config = config or ServerConfig()
    pool = pool or CompositePool(max_workers=config.workers)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.max_content_length
    app.extensions["composite_pool"] = pool
    CORS(app, resources={r"/*": {"origins": config.allowed_origins}})

    @app.errorhandler(RequestEntityTooLarge)
    def too_large(_e):
        return jsonify({"error": "InvalidInput",
                        "message": f"upload exceeds {config.max_upload_mb} MB"}), 413

    @app.get("/healthz")
    def healthz():
        return jsonify({"ok": True})

    @app.post("/api/watermark")
    def watermark():
        try:
            photo = _read_file("photo")
            if photo is None:
                raise InvalidInput("photo required")
            options = RequestOptions.from_form(request.form)
            req = options.to_request(photo, _read_file("watermarkImage"))
            # 解码前先校验,避免无效请求占用工作线程
            req.validate()

            job = pool.submit(req)
            try:
                result = job.result(timeout=config.render_timeout)
            except concurrent.futures.TimeoutError:
                job.cancel()
                raise Cancelled(f"render exceeded {config.render_timeout}s") from None
        except WatermarkError as e:
            if e.status >= 500:
                logger.exception("watermark failed: %s", e)
            else:
                logger.warning("rejected watermark request: %s", e)
            return _error(e)

        return Response(result.data, mimetype=result.content_type)

    return app


def main():
    config = ServerConfig.from_env()
    configure_logging(config.log_level)
    app = create_app(config)
    logger.info("Server listening on %s:%d", config.host, config.port)
    app.run(host=config.host, port=config.port, threaded=True)


if __name__ == "__main__":
    main()
