import atexit
import logging
import os

from flask import Flask, jsonify
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from fridgesmart_backend.api import init_app as init_api
from fridgesmart_backend.config import (
    DEFAULT_LLM_TIMEOUT_SECONDS,
    DEFAULT_TEXT_MODEL,
    DEFAULT_VISION_MODEL,
)
from fridgesmart_backend.models import get_database_url
from fridgesmart_backend.services.analysis import AnalysisGateway
from fridgesmart_backend.services.controller import FridgeSmartController
from fridgesmart_backend.services.devices import CAMERA, DeviceRegistry, OpenCVCamera
from fridgesmart_backend.services.inventory_store import InventoryStore
from fridgesmart_backend.services.llm import (
    TextLLMSettings,
    VisionLLMSettings,
    init_text_llm_client,
    init_vision_llm_client,
)
from fridgesmart_backend.services.storage import (
    BlobStorage,
    InMemoryBlobStorage,
    S3BlobStorageSettings,
    SQLBlobStorage,
    init_s3_blob_storage,
)


def create_app(
    *,
    storage: BlobStorage | None = None,
    gateway: AnalysisGateway | None = None,
    devices: DeviceRegistry | None = None,
) -> Flask:
    """Application factory for the FridgeSmart backend.

    Collaborators passed in take precedence over the environment.
    """
    app = Flask(__name__)

    _configure_logging(app)

    if storage is None:
        storage = _init_storage(app)
    if gateway is None:
        gateway = _init_gateway(app)
    if devices is None:
        devices = _init_devices(app)

    store = InventoryStore(storage)
    store.load()

    controller = FridgeSmartController(store, gateway, devices)
    app.extensions["inventory_store"] = store
    app.extensions["analysis_gateway"] = gateway
    app.extensions["controller"] = controller
    atexit.register(controller.close)

    @app.get("/healthz")
    def healthcheck():
        return jsonify(status="ok")

    @app.get("/api/healthz")
    def api_healthcheck():
        return jsonify(status="ok")

    init_api(app)

    return app


def _configure_logging(app: Flask) -> None:
    """Ensure application and root loggers emit INFO-level logs."""

    logging.basicConfig(level=logging.INFO)
    logging.getLogger().setLevel(logging.INFO)
    app.logger.setLevel(logging.INFO)


def _init_storage(app: Flask) -> BlobStorage:
    """Pick the persistence backend: database, then S3, then memory."""

    try:
        database_url = get_database_url()
    except RuntimeError:
        database_url = None

    if database_url:
        engine = create_engine(database_url, pool_pre_ping=True)
        SessionLocal = sessionmaker(
            bind=engine,
            autoflush=False,
            expire_on_commit=False,
        )
        app.extensions["db_engine"] = engine
        app.extensions["db_sessionmaker"] = SessionLocal
        return SQLBlobStorage(SessionLocal)

    storage_bucket = os.environ.get("FRIDGESMART_S3_BUCKET")
    if storage_bucket:
        return init_s3_blob_storage(
            S3BlobStorageSettings(
                bucket=storage_bucket,
                region_name=os.environ.get("FRIDGESMART_S3_REGION"),
                endpoint_url=os.environ.get("FRIDGESMART_S3_ENDPOINT_URL"),
                base_prefix=os.environ.get(
                    "FRIDGESMART_S3_BASE_PREFIX", "fridgesmart"
                ),
                access_key_id=os.environ.get("AWS_ACCESS_KEY_ID"),
                secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY"),
            )
        )

    app.logger.warning(
        "DATABASE_URL and FRIDGESMART_S3_BUCKET not set; inventory kept in memory"
    )
    return InMemoryBlobStorage()


def _init_gateway(app: Flask) -> AnalysisGateway | None:
    """Build the model gateway when an API key is available."""

    llm_api_key = os.environ.get("FRIDGESMART_LLM_API_KEY") or os.environ.get(
        "OPENAI_API_KEY"
    )
    if not llm_api_key:
        app.logger.warning(
            "FRIDGESMART_LLM_API_KEY/OPENAI_API_KEY not set; scanning, recipes "
            "and assistant disabled"
        )
        return None

    timeout_env = os.environ.get("FRIDGESMART_LLM_TIMEOUT_SECONDS")
    timeout_seconds = DEFAULT_LLM_TIMEOUT_SECONDS
    if timeout_env:
        try:
            timeout_seconds = float(timeout_env)
        except ValueError:
            app.logger.warning(
                "invalid FRIDGESMART_LLM_TIMEOUT_SECONDS=%s; using %s",
                timeout_env,
                DEFAULT_LLM_TIMEOUT_SECONDS,
            )

    vision_client = init_vision_llm_client(
        VisionLLMSettings(
            api_key=llm_api_key,
            model=os.environ.get("FRIDGESMART_VISION_MODEL", DEFAULT_VISION_MODEL),
            timeout_seconds=timeout_seconds,
        )
    )
    text_client = init_text_llm_client(
        TextLLMSettings(
            api_key=llm_api_key,
            model=os.environ.get("FRIDGESMART_TEXT_MODEL", DEFAULT_TEXT_MODEL),
            timeout_seconds=timeout_seconds,
        )
    )
    return AnalysisGateway(vision_client=vision_client, text_client=text_client)


def _init_devices(app: Flask) -> DeviceRegistry:
    """Register the OpenCV camera when a camera index is configured."""

    camera_index_env = os.environ.get("FRIDGESMART_CAMERA_INDEX")
    if camera_index_env is None:
        app.logger.info("FRIDGESMART_CAMERA_INDEX not set; camera capture disabled")
        return DeviceRegistry()

    try:
        camera_index = int(camera_index_env)
    except ValueError:
        app.logger.warning(
            "camera disabled: invalid FRIDGESMART_CAMERA_INDEX=%s",
            camera_index_env,
        )
        return DeviceRegistry()

    return DeviceRegistry({CAMERA: lambda: OpenCVCamera(camera_index)})


app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=8000)
