from flask import jsonify


def json_response(message="success", data=None, code=200, status=None):
    """统一响应信封 {code, message, data}；HTTP 状态默认与 code 一致"""
    resp = jsonify({"code": code, "message": message, "data": data})
    resp.status_code = status or code
    return resp
