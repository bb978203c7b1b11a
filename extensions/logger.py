# extensions/logger.py
import os, sys, logging, json, uuid, time
from logging.handlers import RotatingFileHandler
from flask import g, request, has_request_context

_REQUEST_ID_KEY = "request_id"
# 业务日志可通过 extra={...} 附带的字段
_EXTRA_FIELDS = ("request_id", "user_id", "project_id", "case_count")


class JsonFormatter(logging.Formatter):
    def __init__(self, app_name=None):
        super().__init__()
        self.app_name = app_name

    def format(self, record):
        data = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if self.app_name:
            data["app"] = self.app_name
        for key in _EXTRA_FIELDS:
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False, default=str)


class RequestIdFilter(logging.Filter):
    def filter(self, record):
        if has_request_context():
            record.request_id = getattr(g, _REQUEST_ID_KEY, "-")
        elif not hasattr(record, "request_id"):
            record.request_id = "-"
        return True


def get_request_id():
    """返回当前请求的 request_id，请求上下文之外返回 None"""
    if not has_request_context():
        return None
    if not hasattr(g, _REQUEST_ID_KEY):
        setattr(g, _REQUEST_ID_KEY, request.headers.get("X-Request-Id") or uuid.uuid4().hex)
    return getattr(g, _REQUEST_ID_KEY)


def _install_handlers(cfg, level):
    root = logging.getLogger()
    # 避免重复添加
    if any(getattr(h, "_bulk_edit_handler", False) for h in root.handlers):
        return

    log_dir = cfg["LOG_DIR"]
    os.makedirs(log_dir, exist_ok=True)
    root.setLevel(level)

    text_fmt = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(request_id)s | %(name)s | %(message)s",
        "%Y-%m-%d %H:%M:%S"
    )
    json_fmt = JsonFormatter(cfg.get("APP_NAME"))
    formatter = json_fmt if cfg["LOG_JSON"] else text_fmt

    def make_handler(filename, lvl=None):
        h = RotatingFileHandler(
            os.path.join(log_dir, filename),
            maxBytes=cfg["LOG_MAX_BYTES"],
            backupCount=cfg["LOG_BACKUP_COUNT"],
            encoding="utf-8"
        )
        h.setLevel(lvl or level)
        return h

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    for h in (console, make_handler("app.log"), make_handler("error.log", logging.ERROR)):
        h.setFormatter(formatter)
        h.addFilter(RequestIdFilter())
        h._bulk_edit_handler = True
        root.addHandler(h)

    # 降低 noisy 包
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.INFO)


def init_logger(app):
    cfg = app.config
    level = getattr(logging, cfg["LOG_LEVEL"].upper(), logging.INFO)
    _install_handlers(cfg, level)

    app.logger.info("Logger initialized")

    # 注册请求钩子
    @app.before_request
    def _before():
        g._req_start = time.time()
        g.pop(_REQUEST_ID_KEY, None)
        get_request_id()
        app.logger.info(f"REQ {request.method} {request.path} from {request.remote_addr}")

    @app.after_request
    def _after(resp):
        duration = (time.time() - getattr(g, "_req_start", time.time())) * 1000
        app.logger.info(f"RESP {request.method} {request.path} {resp.status_code} {duration:.1f}ms")
        request_id = getattr(g, _REQUEST_ID_KEY, None)
        if request_id:
            resp.headers["X-Request-Id"] = request_id
        return resp
