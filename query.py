#!/usr/bin/env python3
"""Ad hoc runner for the Recipe Snap flows.

Run the flows on a photo without starting the HTTP server.

Usage:
    python query.py --image images/caprese.jpg               # identify dish + generate recipe
    python query.py --recipe --image images/caprese.jpg      # recipe only
    python query.py --dish --url https://example.com/a.png   # dish only, image fetched from URL
    python query.py --debug --image images/caprese.jpg       # also print raw JSON results

Features:
- Loads the photo from a file or URL and builds the data URI (media type sniffed from the bytes)
- Drives a Client exactly like the web page does (same alerts and state)
- Renders dish and recipe with rich markdown
- Exits with 1 when the photo cannot be loaded or every requested flow failed
"""

import asyncio
import base64
import sys
from pathlib import Path
from typing import Optional

import aiohttp
from rich.console import Console
from rich.markdown import Markdown

from recipe_snap.capabilities.factory import build_capability
from recipe_snap.flows.generate_recipe import RecipeGenerator
from recipe_snap.flows.identify_dish import DishIdentifier
from recipe_snap.utils.config import config
from recipe_snap.utils.images import sniff_media_type
from recipe_snap.utils.logger import logger
from recipe_snap.web.client import Client

console = Console()

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


def guess_media_type(image_bytes: bytes, filename: str = "", content_type: Optional[str] = None) -> str:
    """Pick the media type to declare: sniffed bytes first, then the HTTP header, then the extension."""
    sniffed = sniff_media_type(image_bytes)
    if sniffed:
        return sniffed
    if content_type and content_type.startswith("image/"):
        return content_type.split(";")[0].strip()
    return MIME_TYPES.get(Path(filename).suffix.lower(), "image/jpeg")


def load_image_file(image_path: str) -> tuple[bytes, str]:
    image_file = Path(image_path)
    if not image_file.exists():
        raise FileNotFoundError(f"Image file not found: {image_path}")
    image_bytes = image_file.read_bytes()
    return image_bytes, guess_media_type(image_bytes, image_file.name)


async def fetch_image_url(url: str) -> tuple[bytes, str]:
    """Download an image (10s timeout)."""
    async with aiohttp.ClientSession() as session:
        async with session.get(url, timeout=aiohttp.ClientTimeout(total=10)) as response:
            response.raise_for_status()
            image_bytes = await response.read()
            return image_bytes, guess_media_type(image_bytes, url, response.headers.get("Content-Type"))


def render_client(client: Client, debug: bool = False) -> None:
    """Print the Client's current results as markdown."""
    if client.dish:
        console.print(
            Markdown(f"## Identified Dish\n\n**{client.dish.dish_name}** (confidence {client.dish.confidence:.0%})")
        )
    elif client.dish_error:
        console.print(f"[red]✗ Dish identification failed: {client.dish_error}[/red]")

    if client.recipe:
        ingredients = "\n".join(f"- {item}" for item in client.recipe.ingredients)
        steps = "\n".join(f"{index}. {step}" for index, step in enumerate(client.recipe.instructions, start=1))
        console.print(
            Markdown(f"## {client.recipe.recipe_name}\n\n### Ingredients\n\n{ingredients}\n\n### Instructions\n\n{steps}")
        )
    elif client.recipe_error:
        console.print(f"[red]✗ Recipe generation failed: {client.recipe_error}[/red]")

    if debug:
        console.print("[bold cyan]Debug Mode: Raw Results[/bold cyan]")
        console.print("[dim]" + "=" * 60 + "[/dim]")
        console.print_json(
            data={
                "dish": client.dish.model_dump(by_alias=True) if client.dish else None,
                "recipe": client.recipe.model_dump(by_alias=True) if client.recipe else None,
                "dish_error": client.dish_error,
                "recipe_error": client.recipe_error,
            }
        )
        console.print("[dim]" + "=" * 60 + "[/dim]")


async def run_query(
    image_path: Optional[str] = None,
    image_url: Optional[str] = None,
    dish: bool = True,
    recipe: bool = True,
    debug: bool = False,
) -> int:
    """Load a photo, run the requested flows through a Client and render the results.

    Returns:
        Process exit code.
    """
    try:
        if image_url:
            logger.info(f"Fetching image: {image_url}")
            image_bytes, media_type = await fetch_image_url(image_url)
        else:
            image_bytes, media_type = load_image_file(image_path)
    except (OSError, aiohttp.ClientError, asyncio.TimeoutError) as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        return 1

    logger.info(f"✓ Loaded image ({media_type}, {len(image_bytes) / 1024:.1f} KB)")

    capability = build_capability()
    client = Client(
        DishIdentifier(capability, timeout_seconds=config.FLOW_TIMEOUT_SECONDS),
        RecipeGenerator(capability, min_ingredients=config.MIN_INGREDIENTS, timeout_seconds=config.FLOW_TIMEOUT_SECONDS),
    )
    image_data = base64.b64encode(image_bytes).decode("utf-8")
    if not client.load_photo(f"data:{media_type};base64,{image_data}"):
        console.print(f"[red]✗ {client.alert}[/red]")
        return 1

    outcomes = []
    try:
        if dish:
            outcomes.append(await client.identify_dish())
        if recipe:
            outcomes.append(await client.generate_recipe())
    finally:
        await capability.aclose()

    console.print()
    render_client(client, debug=debug)
    return 0 if any(outcomes) else 1


USAGE = 'Usage: python query.py [--debug] [--dish|--recipe|--both] (--image PATH | --url URL)'


if __name__ == "__main__":
    debug_mode = False
    want_dish = want_recipe = False
    image_path = image_url = None
    args = sys.argv[1:]

    while args:
        flag = args.pop(0)
        if flag == "--debug":
            debug_mode = True
        elif flag == "--dish":
            want_dish = True
        elif flag == "--recipe":
            want_recipe = True
        elif flag == "--both":
            want_dish = want_recipe = True
        elif flag in ("--image", "--url"):
            if not args:
                print(f"Error: {flag} flag requires a value")
                sys.exit(1)
            if flag == "--image":
                image_path = args.pop(0)
            else:
                image_url = args.pop(0)
        else:
            print(f"Unknown flag: {flag}")
            print(USAGE)
            sys.exit(1)

    if not image_path and not image_url:
        print("Error: No image provided")
        print(USAGE)
        sys.exit(1)

    # Neither flag means both flows
    if not want_dish and not want_recipe:
        want_dish = want_recipe = True

    try:
        exit_code = asyncio.run(
            run_query(image_path, image_url, dish=want_dish, recipe=want_recipe, debug=debug_mode)
        )
    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        exit_code = 0
    sys.exit(exit_code)
