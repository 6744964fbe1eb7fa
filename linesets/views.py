from __future__ import annotations

import io
import logging
from datetime import datetime
from typing import Iterable, Optional

from flask import (
    Blueprint,
    Response,
    current_app,
    flash,
    jsonify,
    render_template,
    request,
    send_file,
)

from .forms import (
    ComparisonRequest,
    ValidationError,
    normalize_newlines,
    parse_comparison,
    validate_export_format,
    validate_relation,
)
from .relations import RELATION_NAMES, NormalizationOptions, SetRelations, compute


LOGGER = logging.getLogger(__name__)

main_bp = Blueprint("main", __name__)
api_bp = Blueprint("api", __name__, url_prefix="/api")

RELATION_TITLES = {
    "intersection": "Intersection (A ∩ B)",
    "unique_a": "Only in A (A − B)",
    "unique_b": "Only in B (B − A)",
    "union": "Union (A ∪ B)",
}


@main_bp.route("/", methods=["GET", "POST"])
def index():
    defaults = _default_options()
    comparison = ComparisonRequest(text_a="", text_b="", options=defaults)
    relations: Optional[SetRelations] = None

    if request.method == "POST":
        try:
            comparison = _comparison_from_form()
        except ValidationError as exc:
            LOGGER.warning("Rejected comparison form: %s", exc)
            flash(str(exc), "danger")
            return _render_index(_comparison_for_redisplay(), None), 400
        relations = _run(comparison)

    return _render_index(comparison, relations)


@main_bp.route("/export/<relation>", methods=["POST"])
def export_relation(relation: str):
    expects_json = request.headers.get("X-Requested-With") == "XMLHttpRequest"
    try:
        relation = validate_relation(relation)
        export_format = validate_export_format(request.form.get("format", "txt"))
        comparison = _comparison_from_form()
    except ValidationError as exc:
        LOGGER.warning("Rejected export request: %s", exc)
        if expects_json:
            return jsonify({"status": "error", "message": str(exc)}), 400
        flash(str(exc), "danger")
        return _render_index(_comparison_for_redisplay(), None), 400

    relations = _run(comparison)
    lines = relations.relation(relation)

    if export_format == "csv":
        return _export_csv(relation, lines)
    if export_format == "xlsx":
        return _export_excel(relation, lines)
    return _export_text(relation, relations.joined(relation))


@api_bp.route("/compare", methods=["POST"])
def compare():
    if request.is_json:
        data = request.get_json(silent=True)
        files = None
    else:
        data = request.form
        files = request.files

    try:
        comparison = parse_comparison(data, _default_options(), files)
    except ValidationError as exc:
        LOGGER.warning("Rejected comparison request: %s", exc)
        return jsonify({"status": "error", "message": str(exc)}), 400

    relations = _run(comparison)
    payload = {
        "status": "ok",
        "options": comparison.options.as_dict(),
        "counts": relations.counts(),
    }
    payload.update(relations.as_dict())
    return jsonify(payload)


def _default_options() -> NormalizationOptions:
    config = current_app.config
    return NormalizationOptions(
        ignore_case=bool(config.get("DEFAULT_IGNORE_CASE", False)),
        trim=bool(config.get("DEFAULT_TRIM", True)),
        ignore_empty=bool(config.get("DEFAULT_IGNORE_EMPTY", True)),
    )


def _comparison_from_form() -> ComparisonRequest:
    # The page posts a hidden "submitted" marker so unticked checkboxes read as False.
    return parse_comparison(
        request.form,
        _default_options(),
        request.files,
        checkboxes="submitted" in request.form,
    )


def _comparison_for_redisplay() -> ComparisonRequest:
    """Return what the user submitted so a rejected form keeps their lists."""
    try:
        return _comparison_from_form()
    except ValidationError:
        return ComparisonRequest(
            text_a=normalize_newlines(request.form.get("text_a", "")),
            text_b=normalize_newlines(request.form.get("text_b", "")),
            options=_default_options(),
        )


def _run(comparison: ComparisonRequest) -> SetRelations:
    relations = compute(comparison.text_a, comparison.text_b, comparison.options)
    LOGGER.debug("Compared lists with %s: %s", comparison.options.as_dict(), relations.counts())
    return relations


def _render_index(comparison: ComparisonRequest, relations: Optional[SetRelations]):
    return render_template(
        "index.html",
        comparison=comparison,
        relations=relations,
        relation_names=RELATION_NAMES,
        relation_titles=RELATION_TITLES,
    )


def _export_text(relation: str, body: str):
    filename = _export_filename(relation, "txt")
    return Response(
        body,
        mimetype="text/plain",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def _export_csv(relation: str, lines: Iterable[str]):
    import csv

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["line"])
    for line in lines:
        writer.writerow([line])

    filename = _export_filename(relation, "csv")
    return Response(
        output.getvalue(),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def _export_excel(relation: str, lines: Iterable[str]):
    from openpyxl import Workbook

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = relation
    sheet.append(["line"])
    for line in lines:
        sheet.append([line])

    stream = io.BytesIO()
    workbook.save(stream)
    stream.seek(0)

    filename = _export_filename(relation, "xlsx")
    return send_file(
        stream,
        as_attachment=True,
        download_name=filename,
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )


def _export_filename(relation: str, extension: str) -> str:
    timestamp = datetime.utcnow().strftime("%Y%m%d-%H%M%S")
    return f"{relation}-{timestamp}.{extension}"
