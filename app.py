# app.py
import logging

from flask import Flask
from werkzeug.exceptions import HTTPException
from config.settings import get_config
from extensions.database import db, migrate
from extensions.logger import init_logger
from controllers.test_case_controller import test_case_bp
from utils.response import json_response
from utils.exceptions import BizError

import models  # noqa: F401  注册全部模型供 Flask-Migrate 检测

logger = logging.getLogger(__name__)


def create_app(config_name="development"):
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    # 初始化扩展
    db.init_app(app)
    migrate.init_app(app, db)
    init_logger(app)
    app.logger.info("app created with config=%s", config_name)

    # 用例批量编辑 / 版本历史
    app.register_blueprint(test_case_bp)

    # 错误处理
    @app.errorhandler(404)
    def not_found(e):
        return json_response(message="接口不存在", code=404)

    @app.errorhandler(BizError)
    def _biz_err(e: BizError):
        return json_response(code=e.code, message=e.message, data=e.data)

    @app.errorhandler(Exception)
    def _err(e):
        if isinstance(e, HTTPException):
            return json_response(code=e.code, message=e.description)
        logger.exception("UNHANDLED EXCEPTION")
        return json_response(code=500, message="服务器内部错误")

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=8888, debug=True)
