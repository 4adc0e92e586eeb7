# routes/images.py
from flask import Blueprint, request, jsonify, send_file, url_for, current_app
import os, uuid

from raster.errors import ImageProcError, InvalidArgument, Status
from raster.pipeline import FilterParams, Tool, run_filter, apply_pipeline, parse_steps
from utils.imaging import allowed, pil_to_bytes, to_pil, load_image, save_image
from utils.logging import get_logger

bp = Blueprint("images", __name__)
logger = get_logger(__name__)

HTTP_STATUS = {
    Status.INVALID_ARGUMENT: 400,
    Status.FILE_NOT_FOUND: 404,
    Status.FILE_READ: 422,
    Status.UNSUPPORTED_FORMAT: 415,
    Status.OUT_OF_MEMORY: 507,
}

def _fail(status: Status, message: str = ""):
    logger.warning("request rejected: %s %s", status.name, message)
    return (message or status.name), HTTP_STATUS.get(status, 500)

def _limits():
    cfg = current_app.config
    return {
        "max_sigma": cfg["MAX_SIGMA"],
        "max_radius": cfg["MAX_MEDIAN_RADIUS"],
        "workers": cfg["MEDIAN_WORKERS"],
    }

def _load_from_uploads(filename):
    if not filename or not allowed(filename, current_app.config["ALLOWED_EXTS"]):
        raise InvalidArgument("Invalid filename")
    return load_image(os.path.join(current_app.config["UPLOAD_DIR"], os.path.basename(filename)))

def _load_or_fail(filename):
    """(buffer, None) on success, (None, response) otherwise."""
    try:
        return _load_from_uploads(filename), None
    except ImageProcError as exc:
        return None, _fail(exc.status, str(exc))

def _preview(buffer):
    return send_file(pil_to_bytes(to_pil(buffer), fmt="PNG"),
                     mimetype="image/png",
                     as_attachment=False,
                     download_name="preview.png")


@bp.get("/")
def index():
    return jsonify({
        "tools": [t.value for t in Tool],
        "defaults": {
            "sigma": current_app.config["DEFAULT_PARAMETER"],
            "radius": int(current_app.config["DEFAULT_PARAMETER"]),
        },
    })

@bp.post("/upload")
def upload():
    if "image" not in request.files:
        return "No file part", 400
    f = request.files["image"]
    if f.filename == "" or not allowed(f.filename, current_app.config["ALLOWED_EXTS"]):
        return "Invalid file", 400

    ext = f.filename.rsplit(".", 1)[1].lower()
    file_id = f"{uuid.uuid4().hex}.{ext}"
    save_path = os.path.join(current_app.config["UPLOAD_DIR"], file_id)
    f.save(save_path)
    logger.info("stored upload %s as %s", f.filename, file_id)

    return jsonify({
        "ok": True,
        "filename": file_id,
        "url": url_for("static", filename=f"uploads/{file_id}")
    })

# -------- APPLY ENDPOINTS --------

@bp.post("/apply/pipeline")
def apply_pipeline_route():
    data = request.get_json(silent=True) or {}
    try:
        steps = parse_steps(data.get("steps") or [], **_limits())
    except ImageProcError as exc:
        return _fail(exc.status, str(exc))

    buffer, error = _load_or_fail(data.get("filename"))
    if error:
        return error

    status = apply_pipeline(buffer, steps)
    if status is not Status.SUCCESS:
        return _fail(status)
    return _preview(buffer)

@bp.post("/apply/<tool>")
def apply_tool(tool):
    data = request.get_json(silent=True) or {}
    try:
        params = FilterParams.from_mapping({**data, "tool": tool}, **_limits())
    except ImageProcError as exc:
        return _fail(exc.status, str(exc))

    buffer, error = _load_or_fail(data.get("filename"))
    if error:
        return error

    status = run_filter(buffer, params)
    if status is not Status.SUCCESS:
        return _fail(status)
    return _preview(buffer)

# -------- SAVE (generic) --------

@bp.post("/save")
def save_result():
    """
    JSON: filename, op (tool name or "pipeline") and the op's parameters;
    pipeline takes steps: [{tool, sigma|radius|threshold}, ...]
    """
    data = request.get_json(silent=True) or {}
    op = (data.get("op") or "").lower().strip()

    try:
        if op == "pipeline":
            steps = parse_steps(data.get("steps") or [], **_limits())
            suffix = "pipeline_" + ("_".join(s.describe() for s in steps) or "noop")
        else:
            steps = [FilterParams.from_mapping(data, **_limits())]
            suffix = steps[0].describe()
    except ImageProcError as exc:
        return _fail(exc.status, str(exc))

    buffer, error = _load_or_fail(data.get("filename"))
    if error:
        return error

    status = apply_pipeline(buffer, steps)
    if status is not Status.SUCCESS:
        return _fail(status)

    out_name = f"{suffix}_{uuid.uuid4().hex}.png"
    out_path = os.path.join(current_app.config["RESULT_DIR"], out_name)
    try:
        save_image(buffer, out_path, fmt="PNG")
    except ImageProcError as exc:
        return _fail(exc.status, str(exc))

    return jsonify({
        "ok": True,
        "result_url": url_for("static", filename=f"results/{out_name}", _external=False)
    })
