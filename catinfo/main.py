"""Main entry point for the catinfo application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Annotated, Any, Coroutine, Dict, Optional

import typer

logger = logging.getLogger(__name__) # Get logger for this module

# --- Core Layer ---
from catinfo.core.command_handler import CommandHandler
from catinfo.core.services.breed_service import BreedService
from catinfo.core.services.image_service import ImageService

# --- Infrastructure Layer ---
# Config
from catinfo.infrastructure.config.settings import (
    load_configuration, get_config, get_api_key, get_api_base_url, get_request_timeout,
    get_rate_limit, get_retry_settings, get_cache_db_path, get_memory_limits, get_sweep_settings,
)
# UI
from catinfo.infrastructure.cli.display import ConsoleDisplay
# Catalog client
from catinfo.infrastructure.api.cat_api_client import CatApiClient
# Cache
from catinfo.infrastructure.cache.coordinator import ImageCacheCoordinator
from catinfo.infrastructure.cache.eviction_scheduler import EvictionScheduler
from catinfo.infrastructure.cache.memory_store import MemoryStore
from catinfo.infrastructure.cache.persistent_store import PersistentStore
# Resilience
from catinfo.infrastructure.resilience.rate_limiter import RateLimiter
from catinfo.infrastructure.resilience.api_retry import ApiRetryService
# Monitoring
from catinfo.infrastructure.monitoring.logger_setup import setup_logging

# --- Dependency Injection Container (Manual) ---

def create_dependencies() -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.
    """
    dependencies: Dict[str, Any] = {}
    try:
        # 1. Load Configuration First
        load_configuration()
        log_level_name = str(get_config('logging.level', 'WARNING')).upper()
        log_level = getattr(logging, log_level_name, logging.WARNING)
        log_file = get_config('logging.file')
        log_format = get_config('logging.format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        setup_logging(log_level=log_level, log_file=log_file, log_format=log_format)
        logger.info("Configuration and logging initialized.")

        # 2. Instantiate Infrastructure Adapters & Services
        dependencies['ui'] = ConsoleDisplay()

        max_entries, max_cost_bytes = get_memory_limits()
        persistent_store = PersistentStore(db_path=get_cache_db_path())
        interval, max_age, initial_delay = get_sweep_settings()
        dependencies['image_cache'] = ImageCacheCoordinator(
            memory_store=MemoryStore(max_entries=max_entries, max_cost_bytes=max_cost_bytes),
            persistent_store=persistent_store,
            scheduler=EvictionScheduler(
                persistent_store,
                interval_seconds=interval,
                max_age_seconds=max_age,
                initial_delay_seconds=initial_delay,
            ),
        )
        dependencies['image_cache'].start()

        dependencies['catalog_api'] = CatApiClient(
            api_key=get_api_key(),
            base_url=get_api_base_url(),
            timeout=get_request_timeout(),
        )

        # 3. Instantiate Resilience Services
        max_requests, time_window = get_rate_limit()
        retry_policy = get_retry_settings()
        dependencies['api_retry_service'] = ApiRetryService(
            rate_limiter=RateLimiter(max_requests=max_requests, time_window=time_window),
            max_retries=retry_policy['max_retries'],
            initial_backoff_s=retry_policy['initial_delay'],
            backoff_factor=retry_policy['factor'],
        )

        # 4. Instantiate Core Services (injecting dependencies)
        dependencies['image_service'] = ImageService(
            cache=dependencies['image_cache'],
            catalog_api=dependencies['catalog_api'],
            api_retry_service=dependencies['api_retry_service'],
        )
        dependencies['breed_service'] = BreedService(
            catalog_api=dependencies['catalog_api'],
            image_service=dependencies['image_service'],
            api_retry_service=dependencies['api_retry_service'],
        )
        logger.info("Core services initialized.")

        # 5. Instantiate Command Handler
        dependencies['command_handler'] = CommandHandler(
            breed_service=dependencies['breed_service'],
            image_service=dependencies['image_service'],
            cache=dependencies['image_cache'],
            catalog_api=dependencies['catalog_api'],
            ui=dependencies['ui'],
            api_retry_service=dependencies['api_retry_service'],
        )

        logger.info("All dependencies initialized successfully.")
        return dependencies

    except Exception as e:
        logger.error(f"Fatal Error during application initialization: {e}", exc_info=True)
        if 'ui' in dependencies and dependencies['ui']:
            dependencies['ui'].display_error(f"Application Initialization Failed: {e}")
        else:
            print(f"FATAL ERROR during initialization: {e}", file=sys.stderr)
        sys.exit(1)

# Built on first use so that --help never touches the cache directory
_dependencies: Optional[Dict[str, Any]] = None

def get_dependencies() -> Dict[str, Any]:
    global _dependencies
    if _dependencies is None:
        _dependencies = create_dependencies()
    return _dependencies

async def close_dependencies(dependencies: Dict[str, Any]) -> None:
    """Drains pending disk writes, stops the sweeper and closes the HTTP client."""
    image_cache = dependencies['image_cache']
    try:
        await image_cache.flush()
    finally:
        image_cache.close()
        await dependencies['catalog_api'].aclose()

# --- Typer App Definition ---
app = typer.Typer(
    name="catinfo",
    help="catinfo: browse cat breeds and their images with a two-tier image cache.",
    add_completion=False,
    no_args_is_help=True,
)

# --- Helper for Running Async Commands ---
def run_async(coro: Coroutine[Any, Any, bool]) -> None:
    """Runs a handler coroutine, releases resources, and maps failure to exit code 1."""
    global _dependencies
    dependencies = get_dependencies()

    async def _run() -> bool:
        try:
            return await coro
        finally:
            await close_dependencies(dependencies)

    try:
        succeeded = asyncio.run(_run())
    except Exception as e:
        logger.error(f"Error executing async command: {e}", exc_info=True)
        dependencies['ui'].display_error(f"Command execution failed: {e}")
        succeeded = False
    finally:
        # Resources are closed; a later command in this process rebuilds them
        _dependencies = None

    if not succeeded:
        raise typer.Exit(code=1)

def _handler() -> CommandHandler:
    return get_dependencies()['command_handler']

# --- CLI Commands ---

@app.command()
def breeds():
    """List every breed of the catalog."""
    run_async(_handler().handle_breeds())

@app.command()
def breed(
    breed_id: Annotated[str, typer.Argument(help="Breed identifier, e.g. 'abys'.")]
):
    """Show the details and reference image of one breed."""
    run_async(_handler().handle_breed(breed_id))

@app.command()
def image(
    image_id: Annotated[str, typer.Argument(help="Catalog image identifier.")],
    output: Annotated[Optional[Path], typer.Option("--output", "-o", dir_okay=False,
                                                   help="Write the image to this file.")] = None,
):
    """Fetch one image by id through the cache."""
    run_async(_handler().handle_image(image_id, output))

@app.command()
def images(
    breed_id: Annotated[str, typer.Argument(help="Breed identifier, e.g. 'abys'.")],
    page: Annotated[int, typer.Option("--page", min=0, help="Result page, starting at 0.")] = 0,
    limit: Annotated[int, typer.Option("--limit", min=1, max=100, help="Images per page.")] = 10,
    save_dir: Annotated[Optional[Path], typer.Option("--save-dir", file_okay=False,
                                                     help="Download every image of the page into this directory.")] = None,
):
    """List (and optionally download) a page of a breed's images."""
    run_async(_handler().handle_images(breed_id, page=page, limit=limit, save_dir=save_dir))

@app.command(name="cache-info")
def cache_info_command():
    """Show entry counts and sizes of the memory and disk caches."""
    run_async(_handler().handle_cache_info())

@app.command(name="clear-cache")
def clear_cache_command():
    """Remove every cached image from memory and disk."""
    run_async(_handler().handle_clear_cache())

@app.command()
def sweep():
    """Delete disk cache entries not accessed within the maximum age."""
    run_async(_handler().handle_sweep())

# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app() # Typer takes over

if __name__ == "__main__":
    cli_entry_point()
