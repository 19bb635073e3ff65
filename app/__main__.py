"""Run the service with uvicorn: `python -m app`."""

if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run("app.main:create_app", factory=True, host="0.0.0.0", port=8000, log_config=None)
