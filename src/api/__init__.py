"""HTTP application entry point (``uvicorn api.main:create_app --factory``)."""
