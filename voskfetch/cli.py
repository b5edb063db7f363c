#!/usr/bin/env python3
import argparse
import sys
from typing import List, Optional

from tqdm import tqdm

from .config import Settings
from .downloader import ModelDownloadManager
from .logger import setup_logging
from .utils import format_bytes


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='voskfetch',
        description='Download, verify and cache offline speech-recognition models.'
    )
    parser.add_argument(
        '--cache-dir',
        help='Model cache root (default: VOSKFETCH_CACHE_DIR or the user cache directory)'
    )
    parser.add_argument(
        '--log-file',
        help='Path to a file to save structured JSON logs'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Log debug events'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('languages', help='List supported languages')
    subparsers.add_parser('list', help='List downloaded models')

    download = subparsers.add_parser('download', help='Download a model')
    download.add_argument('model', help='Language code (e.g. "de") or model name (e.g. "model-de")')
    download.add_argument(
        '--force',
        action='store_true',
        help='Download again even if the model is already present'
    )

    for name, help_text in (
        ('status', 'Show download state of a model'),
        ('verify', 'Check the structure of a downloaded model'),
        ('path', 'Print the resolved model directory'),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('model', help='Language code or model name')

    return parser


def cmd_languages(manager: ModelDownloadManager) -> int:
    print(f"{'Code':<8} {'Model':<10} Language")
    print("-" * 40)
    for language in manager.supported_languages():
        print(f"{language['code']:<8} {language['model_name']:<10} {language['name']}")
    return 0


def cmd_list(manager: ModelDownloadManager) -> int:
    models = manager.downloaded_models()
    if not models:
        print("No models downloaded.")
        return 0
    for model in models:
        print(f"{model['model_name']:<10} {model['name']:<16} {format_bytes(model['size']):>10}  {model['path']}")
    return 0


def cmd_download(manager: ModelDownloadManager, model_name: str, force: bool) -> int:
    if manager.is_model_downloaded(model_name) and not force:
        print(f"Model {model_name} already downloaded.")
        return 0
    if manager.is_download_in_progress(model_name):
        print(f"Download already in progress for {model_name}.", file=sys.stderr)
        return 1

    descriptor = manager.registry.get(model_name)
    print("=" * 70)
    print(f"Model: {descriptor.name} ({descriptor.language_name})")
    print(f"Source: {descriptor.url}")
    print(f"Destination: {manager.get_model_directory(model_name)}")
    print("=" * 70)

    errors: List[str] = []
    with tqdm(total=100, unit='%', desc=f"Downloading {model_name}",
              disable=not sys.stdout.isatty()) as pbar:
        def on_progress(percent: int) -> None:
            pbar.update(percent - pbar.n)

        outcome = manager.download_model(
            model_name,
            on_progress=on_progress,
            on_error=errors.append,
        ).result()

    if not outcome.success:
        print(f"Error: {errors[0] if errors else outcome.message}", file=sys.stderr)
        return 1

    print(f"Model {model_name} downloaded ({format_bytes(manager.get_model_size(model_name))}).")
    return 0


def cmd_status(manager: ModelDownloadManager, model_name: str) -> int:
    downloaded = manager.is_model_downloaded(model_name)
    in_progress = manager.is_download_in_progress(model_name)
    print(f"Model: {model_name}")
    print(f"- Downloaded: {'yes' if downloaded else 'no'}")
    print(f"- In progress: {'yes' if in_progress else 'no'}")
    if in_progress:
        print(f"- Progress: {manager.store.progress(model_name)}%")
    print(f"- Size: {format_bytes(manager.get_model_size(model_name))}")
    return 0


def cmd_verify(manager: ModelDownloadManager, model_name: str) -> int:
    root = manager.get_resolved_model_directory(model_name)
    result = manager.verify_model(root)
    print(f"Directory: {root}")
    print(f"Files: {result.file_count}")
    for path in sorted(result.matched):
        print(f"  matched {path}")
    print("Valid" if result.valid else "Invalid")
    return 0 if result.valid else 1


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_file, verbose=args.verbose)

    try:
        settings = Settings.from_env(cache_dir=args.cache_dir)
        with ModelDownloadManager(settings, progress_bar=False) as manager:
            if args.command == 'languages':
                return cmd_languages(manager)
            if args.command == 'list':
                return cmd_list(manager)

            model_name = manager.registry.lookup(args.model).name
            if args.command == 'download':
                return cmd_download(manager, model_name, args.force)
            if args.command == 'status':
                return cmd_status(manager, model_name)
            if args.command == 'verify':
                return cmd_verify(manager, model_name)
            if args.command == 'path':
                print(manager.get_resolved_model_directory(model_name))
                return 0
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 1


if __name__ == '__main__':
    sys.exit(main())
