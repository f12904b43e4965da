from __future__ import annotations

from typing import Any

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from config.settings import AppConfig
from store import RecordStore, StoreError, create_trainings_store, create_users_store
from utils.logger import AppLogger


app = Flask(__name__)
CORS(app, resources={r"/api/*": {
    "origins": "*",
    "allow_headers": ["Content-Type"],
    "methods": ["GET", "POST", "OPTIONS"],
}})

# Centralized config and logger
config = AppConfig()
logger = AppLogger(config.log_file_path)
users_store = create_users_store(config, logger)
trainings_store = create_trainings_store(config, logger)


def log(message: str) -> None:
    """Log a simple message to the application log file.

    Thin convenience wrapper around the module-level ``AppLogger``. The
    logger prefixes the message with a timestamp.
    """
    logger.log(message)


def log_kv(event: str, **fields: object) -> None:
    """Log a structured event with key/value pairs.

    The event name is a short identifier (e.g. "USERS_POST_DONE") and the
    keyword arguments are rendered as ``k=v`` tokens on the same line.
    """
    logger.log_kv(event, **fields)


# Log once when the app handles the first request (Flask 3.x safe)
@app.before_request
def _app_ready() -> None:
    """Emit a single ``APP_READY`` event before the first request."""
    if not app.config.get("_APP_READY_LOGGED"):
        log("APP_READY")
        app.config["_APP_READY_LOGGED"] = True


@app.errorhandler(Exception)
def _unhandled(error: Exception):
    if isinstance(error, HTTPException):
        return error
    log_kv("SERVER_ERROR", path=request.path, error=repr(error))
    return jsonify({"error": "Internal server error"}), 500


# --- Collection helpers -------------------------------------------------------


def _list_records(store: RecordStore, event: str):
    try:
        rows = store.load_all()
    except StoreError as e:
        log_kv(event + "_ERROR", error=e, kind=e.kind)
        return jsonify({"error": f"Failed to read {store.name} from CSV file"}), 500
    log_kv(event, rows=len(rows))
    return jsonify(rows)


def _get_record(store: RecordStore, record_id: str, label: str, event: str):
    try:
        row = store.find(record_id)
    except StoreError as e:
        log_kv(event + "_ERROR", id=record_id, error=e, kind=e.kind)
        return jsonify({"error": f"Failed to get {label.lower()}"}), 500
    if row is None:
        log_kv(event + "_NOT_FOUND", id=record_id)
        return jsonify({"error": f"{label} not found"}), 404
    log_kv(event, id=record_id)
    return jsonify(row)


def _replace_records(store: RecordStore, label: str, event: str):
    """Replace the whole collection with the JSON array in the request body.

    Body: [ {<record>}, ... ]
    Returns: { message: "Successfully saved N <name> to CSV file" }
    """
    payload: Any = request.get_json(silent=True)
    if not isinstance(payload, list):
        log_kv(event + "_REJECTED", reason="not_array", type=type(payload).__name__)
        return jsonify({"error": f"Request body must be an array of {store.name}"}), 400
    if not all(isinstance(item, dict) for item in payload):
        log_kv(event + "_REJECTED", reason="non_object_item", items=len(payload))
        return jsonify({"error": f"Each {label.lower()} must be a JSON object"}), 400
    try:
        saved = store.replace_all(payload)
    except StoreError as e:
        log_kv(event + "_ERROR", error=e, kind=e.kind)
        return jsonify({"error": f"Failed to save {store.name} to CSV file"}), 500
    log_kv(event + "_DONE", saved=saved, csv=str(store.csv_path))
    return jsonify({"message": f"Successfully saved {saved} {store.name} to CSV file"})


# --- Routes -------------------------------------------------------------------


@app.route("/api/users", methods=["GET"])
def api_users_list():
    return _list_records(users_store, "USERS_GET")


@app.route("/api/users", methods=["POST"])
def api_users_save():
    return _replace_records(users_store, "User", "USERS_POST")


@app.route("/api/users/<user_id>")
def api_users_get(user_id: str):
    return _get_record(users_store, user_id, "User", "USER_GET")


@app.route("/api/trainings", methods=["GET"])
def api_trainings_list():
    return _list_records(trainings_store, "TRAININGS_GET")


@app.route("/api/trainings", methods=["POST"])
def api_trainings_save():
    return _replace_records(trainings_store, "Training", "TRAININGS_POST")


@app.route("/api/trainings/<training_id>")
def api_trainings_get(training_id: str):
    return _get_record(trainings_store, training_id, "Training", "TRAINING_GET")


@app.route("/api/health")
def api_health():
    """Report liveness and the CSV paths currently in use."""
    return jsonify({
        "status": "OK",
        "message": "Backend server is running",
        "csvPath": str(users_store.csv_path),
        "publicCsvPath": str(users_store.public_csv_path),
        "trainingsCsvPath": str(trainings_store.csv_path),
        "trainingsPublicCsvPath": str(trainings_store.public_csv_path),
    })


if __name__ == "__main__":
    log_kv(
        "APP_START",
        host=config.host,
        port=config.port,
        debug=config.debug,
        users_csv=users_store.csv_path,
        trainings_csv=trainings_store.csv_path,
    )
    app.run(host=config.host, port=config.port, debug=config.debug)
