import os
import importlib
import logging

from fastapi import FastAPI, APIRouter
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from alembic.config import Config
from alembic import command

from core.config import settings
from core.exceptions import register_exception_handlers

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("workshop")

# The directory where all application folders are located
APPS_DIRECTORY = "apps"
API_PREFIX = "/api/v1"
BASE_DIR = os.path.dirname(os.path.abspath(__file__))


# --- Database Migration Function ---
def run_migrations():
    """Programmatically runs Alembic migrations."""
    logger.info("Running database migrations...")
    try:
        alembic_cfg = Config(os.path.join(BASE_DIR, "alembic.ini"))
        alembic_cfg.set_main_option("script_location", os.path.join(BASE_DIR, "alembic"))
        alembic_cfg.attributes["configure_logger"] = False
        command.upgrade(alembic_cfg, "head")
        logger.info("Migrations complete.")
    except Exception as e:
        logger.error(f"An error occurred during migrations: {e}")
        raise


# Initialize the main FastAPI application
app = FastAPI(
    title="Workshop Management API",
    description="Job cards, on-site complaints and workers for a repair workshop.",
    version="1.0.0",
)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=['*'],  # Allows all origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Files saved by the local attachment store are served from here
if settings.STORAGE_BACKEND == "local":
    os.makedirs(settings.LOCAL_STORAGE_DIR, exist_ok=True)
    app.mount(
        settings.LOCAL_STORAGE_BASE_URL,
        StaticFiles(directory=settings.LOCAL_STORAGE_DIR),
        name="uploads",
    )


@app.get("/health")
def health():
    return {"status": "ok"}


# --- Dynamic App Discovery and Router Inclusion ---
apps_path = os.path.join(BASE_DIR, APPS_DIRECTORY)

if not os.path.isdir(apps_path):
    logger.error(f"The directory '{APPS_DIRECTORY}' was not found.")
else:
    for item_name in sorted(os.listdir(apps_path)):
        app_dir = os.path.join(apps_path, item_name)

        if os.path.isdir(app_dir) and not item_name.startswith(('_', '.')):
            module_name = f"{APPS_DIRECTORY}.{item_name}.router"
            try:
                # Import the models from each app to ensure Alembic can detect them
                importlib.import_module(f"{APPS_DIRECTORY}.{item_name}.models")

                router_module = importlib.import_module(module_name)
                router_instance = getattr(router_module, "router", None)

                if router_instance and isinstance(router_instance, APIRouter):
                    app.include_router(
                        router_instance,
                        prefix=f"{API_PREFIX}/{item_name}",
                        tags=[item_name.capitalize()]
                    )
                    logger.info(f"Loaded router from '{item_name}'.")
                else:
                    logger.warning(f"Could not find a valid APIRouter named 'router' in '{module_name}'.")

            except ImportError as e:
                logger.error(f"Failed to import router for '{item_name}': {e}")


# --- Startup Event Handler ---
@app.on_event("startup")
def startup_event():
    """Run database migrations on application startup."""
    if settings.RUN_MIGRATIONS:
        run_migrations()
    logger.info("Application is ready to serve requests.")
