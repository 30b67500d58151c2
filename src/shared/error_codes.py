# src/shared/error_codes.py
# Central mapping that aligns with the API error contract.
# Keep keys stable - clients rely on these.
ERROR_CODES = {
    # ─── Validation & Requests ──────────────────────────────────────────────
    "validation_error": {
        "http": 400,
        "message": "Validation failed for one or more fields."
    },
    "malformed_identifier": {
        "http": 400,
        "message": "Identifier is not well formed."
    },

    # ─── Authentication & Authorization ────────────────────────────────────
    "unauthorized": {
        "http": 401,
        "message": "Unauthorized. Please provide valid credentials."
    },
    "forbidden": {
        "http": 403,
        "message": "You are not allowed to perform this action."
    },

    # ─── Clinical resources ────────────────────────────────────────────────
    "not_found": {
        "http": 404,
        "message": "Resource not found."
    },
    "note_not_found": {
        "http": 404,
        "message": "Note not found."
    },
    "clinic_not_found": {
        "http": 404,
        "message": "Clinic not found."
    },

    # ─── Concurrency ───────────────────────────────────────────────────────
    "conflict": {
        "http": 409,
        "message": "Conflict with existing resource."
    },
    "version_conflict": {
        "http": 409,
        "message": "The resource was modified by another request."
    },

    # ─── Rate Limiting ─────────────────────────────────────────────────────
    "rate_limited": {
        "http": 429,
        "message": "Too many requests. Please try again later."
    },

    # ─── Internal ──────────────────────────────────────────────────────────
    "internal_error": {
        "http": 500,
        "message": "An unexpected error occurred. Please try again later."
    },
    "store_unavailable": {
        "http": 503,
        "message": "The data store is temporarily unavailable."
    },
}
