"""API route handlers."""
from dataclasses import asdict
from io import BytesIO
from typing import List, Optional

from fastapi import APIRouter, UploadFile, File, HTTPException, Depends
from fastapi.responses import StreamingResponse

from formfill.config import config
from formfill.domain.exceptions import FormFillerError
from formfill.domain.models import MappingSource, TargetField
from formfill.services.form_filler import FormFiller
from formfill.services.mapper import apply_profile, merge_mappings, to_serializable
from formfill.services.matcher import Matcher
from formfill.services.type_inference import infer_column_types
from formfill.services.validator import validate
from formfill.sources.tabular import CSV_SUFFIXES, SPREADSHEET_SUFFIXES, load_tabular
from formfill.storage.profiles import ProfileStore
from formfill.targets.base import NullIndicator
from formfill.targets.memory import InMemoryFormTarget
from formfill.targets.worksheet import WorksheetFormTarget, WorksheetHighlighter
from formfill.api.dependencies import (
    get_matcher,
    get_profile_store,
    get_workbook_from_upload,
    read_upload,
)
from formfill.api.schemas import (
    FillRequest,
    MappingEntryOut,
    MatchRequest,
    MatchResponse,
    PreviewRequest,
    ProfileApplyRequest,
    ProfileIn,
    SettingsIn,
    TargetFieldIn,
    ValidateRequest,
    ValidationOut,
)

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _fields(fields: List[TargetFieldIn]) -> List[TargetField]:
    return [f.to_domain() for f in fields]


@router.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Form Filler API",
        "description": "Map spreadsheet columns to form fields, validate values and fill forms row by row",
        "main_endpoint": {
            "url": "/workbook/fill",
            "method": "POST",
            "description": "Upload data file + form workbook → Detect fields → Map columns → Fill one row → Return filled workbook"
        },
        "other_endpoints": {
            "/match": "POST - Auto-map columns to fields, with optional manual overrides",
            "/profile/apply": "POST - Rebuild a saved mapping against the current fields",
            "/profiles": "GET - List saved profiles; PUT/DELETE /profiles/{domain}",
            "/settings": "GET/PUT/DELETE - Global fill settings used by /workbook/fill",
            "/validate": "POST - Validate and coerce one value for a field",
            "/preview": "POST - Dry-run one row against a mapping",
            "/fill": "POST - Batch-fill rows against a field snapshot"
        }
    }


@router.post("/match", response_model=MatchResponse)
async def match_columns(request: MatchRequest, matcher: Matcher = Depends(get_matcher)):
    """Auto-map columns to fields and overlay manual selections."""
    fields = _fields(request.fields)
    if request.column_types is not None:
        column_types = dict(request.column_types)
    else:
        inferred = infer_column_types(
            request.columns, request.rows or [], config.matching.type_sample_size
        )
        column_types = {column: data_type.value for column, data_type in inferred.items()}

    auto = matcher.auto_map(request.columns, fields, column_types)
    mapping = merge_mappings(auto, request.manual, fields)

    out = {}
    for column, entry in mapping.items():
        breakdown = None
        if entry.source is MappingSource.AUTO:
            breakdown = matcher.score_breakdown(column, entry.field, column_types.get(column))
        out[column] = MappingEntryOut.from_entry(entry, breakdown)

    return MatchResponse(
        mapping=out,
        unmapped=[column for column in request.columns if column not in mapping],
        column_types=column_types,
    )


@router.post("/profile/apply")
async def apply_saved_profile(
    request: ProfileApplyRequest,
    store: ProfileStore = Depends(get_profile_store),
):
    """Rebuild a saved mapping, given inline or looked up by site URL."""
    try:
        domain = None
        saved = request.saved
        if saved is None:
            if not request.url:
                raise HTTPException(status_code=400, detail="Either saved or url is required")
            found = store.get_profile_for_site(request.url)
            if found is None:
                raise HTTPException(status_code=404, detail=f"No profile for {request.url}")
            domain, profile = found
            saved = profile.mapping
            store.update_profile_last_used(domain)

        mapping = apply_profile(saved, _fields(request.fields))
        return {
            "domain": domain,
            "options": asdict(store.fill_options(domain)),
            "mapping": {column: MappingEntryOut.from_entry(entry) for column, entry in mapping.items()},
        }
    except HTTPException:
        raise
    except FormFillerError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error applying profile: {str(e)}")


@router.get("/profiles")
async def list_profiles(store: ProfileStore = Depends(get_profile_store)):
    """All saved profiles keyed by domain."""
    try:
        return {domain: asdict(profile) for domain, profile in store.get_all_profiles().items()}
    except FormFillerError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/profiles/{domain}")
async def save_profile(
    domain: str,
    body: ProfileIn,
    store: ProfileStore = Depends(get_profile_store),
):
    """Save a column → selector mapping for a site."""
    try:
        profile = store.save_profile(domain, body.mapping, body.settings.to_store())
        return {"domain": domain, **asdict(profile)}
    except FormFillerError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/profiles/{domain}")
async def delete_profile(domain: str, store: ProfileStore = Depends(get_profile_store)):
    try:
        store.delete_profile(domain)
        return {"deleted": domain}
    except FormFillerError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/settings")
async def get_settings(store: ProfileStore = Depends(get_profile_store)):
    """Global fill settings, defaults included."""
    try:
        return store.get_settings()
    except FormFillerError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/settings")
async def save_settings(body: SettingsIn, store: ProfileStore = Depends(get_profile_store)):
    try:
        settings = store.save_settings(body.to_store())
        store.apply_logging()
        return settings
    except FormFillerError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/settings")
async def reset_settings(store: ProfileStore = Depends(get_profile_store)):
    """Forget saved settings; the environment defaults apply again."""
    try:
        store.reset_settings()
        store.apply_logging()
        return store.get_settings()
    except FormFillerError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/validate", response_model=ValidationOut)
async def validate_value(request: ValidateRequest):
    """Validate and coerce one value for a field."""
    result = validate(request.value, request.field.to_domain())
    return ValidationOut(
        valid=result.valid,
        value=result.value,
        error=result.error,
        kind=result.kind.value if result.kind is not None else None,
    )


@router.post("/preview")
async def preview_row(request: PreviewRequest):
    """Dry-run one row: projected values per field, without writing."""
    fields = _fields(request.fields)
    mapping = merge_mappings({}, request.mapping, fields)
    filler = FormFiller(InMemoryFormTarget(fields))
    return asdict(filler.preview(mapping, request.row))


@router.post("/fill")
def fill_rows(request: FillRequest):
    """Fill rows one after another against a snapshot of the fields.

    Declared sync so the inter-row delay waits in a worker thread.

    Returns the batch result and the field values after the last row.
    """
    fields = _fields(request.fields)
    mapping = merge_mappings({}, request.mapping, fields)
    target = InMemoryFormTarget(fields)
    filler = FormFiller(target, NullIndicator())

    batch = filler.fill_batch(mapping, request.rows, request.options.to_domain())
    return {
        **asdict(batch),
        "aborted": batch.aborted,
        "mapping": to_serializable(mapping),
        "values": target.values(),
        "checked": target.checked(),
    }


@router.post("/workbook/fill")
async def fill_workbook(
    data_file: UploadFile = File(...),
    form_file: UploadFile = File(...),
    row: int = 0,
    sheet: Optional[str] = None,
    highlight: Optional[bool] = None,
    matcher: Matcher = Depends(get_matcher),
    store: ProfileStore = Depends(get_profile_store),
):
    """
    Main endpoint - Upload data file + form workbook → Detect fields → Map columns → Fill one row → Return filled workbook.
    """
    try:
        data_bytes = await read_upload(data_file, SPREADSHEET_SUFFIXES + CSV_SUFFIXES)
        data = load_tabular(BytesIO(data_bytes), filename=data_file.filename, sheet=sheet)
        if not 0 <= row < data.row_count:
            raise HTTPException(
                status_code=400,
                detail=f"Row {row} out of range (data file has {data.row_count} rows)"
            )

        workbook, filename = await get_workbook_from_upload(form_file)
        target = WorksheetFormTarget(workbook.active)
        fields = target.detect_fields()
        if not fields:
            raise HTTPException(
                status_code=400,
                detail=(
                    "No form fields detected in the file. Make sure your form workbook contains "
                    "labels (text ending with ':' or containing form keywords)."
                )
            )

        column_types = infer_column_types(data.columns, data.rows, config.matching.type_sample_size)
        mapping = matcher.auto_map(data.columns, fields, column_types)

        options = store.fill_options()
        if highlight is not None:
            options.highlight_fields = highlight
        store.apply_logging()
        indicator = WorksheetHighlighter() if options.highlight_fields else NullIndicator()
        filler = FormFiller(target, indicator)
        fill_result = filler.fill_row(mapping, data.rows[row], options)

        output = BytesIO()
        workbook.save(output)
        output.seek(0)

        return StreamingResponse(
            output,
            media_type=XLSX_MEDIA_TYPE,
            headers={
                "Content-Disposition": f"attachment; filename=filled_{filename}",
                "X-Fields-Detected": str(len(fields)),
                "X-Fields-Mapped": str(len(mapping)),
                "X-Fields-Filled": str(fill_result.filled),
                "X-Fields-Skipped": str(fill_result.skipped),
                "X-Fill-Errors": str(len(fill_result.errors)),
            }
        )
    except HTTPException:
        raise
    except FormFillerError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error processing file: {str(e)}")
