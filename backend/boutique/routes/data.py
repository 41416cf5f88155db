# Overview: The persistence endpoint: get/set of the whole shop document under one key.

from flask import Blueprint, current_app, jsonify, request

from boutique.services import document_service

data_bp = Blueprint("data", __name__)


def _data_key() -> str:
    return current_app.config["BOUTIQUE_DATA_KEY"]


@data_bp.route("/data", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
def data():
    """
    GET  -> 200 stored document | 404 when nothing has been saved
    POST -> 200 after an upsert of the whole document | 400 without a body
    Anything else -> 405.
    """
    try:
        if request.method == "GET":
            body = document_service.get_document(_data_key())
            if body is None:
                return jsonify({"message": "No data found"}), 404
            return jsonify(body), 200

        if request.method == "POST":
            if not request.get_data():
                return jsonify({"message": "No body provided"}), 400
            payload = request.get_json(silent=True)
            if payload is None:
                return jsonify({"message": "Body must be JSON"}), 400
            document_service.put_document(_data_key(), payload)
            return jsonify({"message": "Data saved successfully"}), 200

        return jsonify({"message": "Method Not Allowed"}), 405
    except document_service.DocumentError as exc:
        return jsonify({"message": str(exc)}), 400
    except Exception as exc:
        current_app.logger.exception("Persistence endpoint failed")
        return jsonify({"message": "Internal Server Error", "error": str(exc)}), 500
