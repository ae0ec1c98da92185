"""``pagesmith generate`` — one generation session from the terminal.

Progress goes to stderr, conversation replies to stdout, and generated
pages into the ``--out`` directory. Ctrl-C stops the session cleanly.

Exit codes: 0 on completion, 1 on error, 130 when stopped.
"""

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from pathlib import Path

from pagesmith.collaborators import FileArtifactStore, hand_off
from pagesmith.config import GeneratorConfig
from pagesmith.controller import GenerationController
from pagesmith.errors import ConfigurationError


def run_generate(args: argparse.Namespace) -> None:
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, object] = {}
    if args.endpoint:
        overrides["endpoint"] = args.endpoint
    try:
        config = GeneratorConfig.from_env(**overrides)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    current: str | None = None
    if args.current:
        try:
            current = Path(args.current).read_text(encoding="utf-8")
        except OSError as exc:
            print(f"Error: cannot read {args.current}: {exc}", file=sys.stderr)
            raise SystemExit(1) from exc

    controller = GenerationController(config)
    store = FileArtifactStore(args.out)
    code = asyncio.run(_generate(controller, store, args.prompt, args.model, current))
    raise SystemExit(code)


async def _generate(
    controller: GenerationController,
    store: FileArtifactStore,
    prompt: str,
    model: str | None,
    current: str | None,
) -> int:
    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, controller.stop)

    errors: list[str] = []

    def show_progress(_document: str) -> None:
        session = controller.session
        if session is not None:
            print(f"\r[{session.progress:3d}%] {session.status:<40}", end="", file=sys.stderr)

    try:
        result = await controller.generate(
            prompt,
            model=model,
            current_document=current,
            on_chunk=show_progress,
            on_error=errors.append,
        )
    finally:
        with contextlib.suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGINT)
    print(file=sys.stderr)

    if result is None:
        if errors:
            print(f"Error: {errors[0]}", file=sys.stderr)
            return 1
        print("Stopped.", file=sys.stderr)
        return 130

    if result.is_conversation:
        print(result.text)
        return 0

    await hand_off(result, store=store)
    print(f"Complete in {result.duration:.1f}s", file=sys.stderr)
    print(store.directory / "index.html")
    return 0
