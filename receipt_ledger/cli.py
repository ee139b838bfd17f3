"""Command-line interface for scanning receipts into a CHK ledger."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
from tqdm import tqdm

from .capture import CameraCapture
from .engine import ReconciliationEngine
from .errors import CaptureError, EngineBusyError, LedgerError, OCRError
from .extract import FieldExtractor
from .ledger import Ledger
from .models import CapturedImage, format_amount
from .ocr import OCRProcessor
from .settings import Settings, load_settings

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)

IMAGE_PATTERNS = ['*.png', '*.PNG', '*.jpg', '*.JPG', '*.jpeg', '*.JPEG']


def find_receipt_images(input_dir: Path) -> List[Path]:
    """Find all receipt images in the input directory and its subdirectories."""
    found = set()
    for pattern in IMAGE_PATTERNS:
        found.update(input_dir.glob(f'**/{pattern}'))

    receipt_files = sorted(found)
    logger.info(f"Found {len(receipt_files)} receipt images in {input_dir}")
    for receipt_file in receipt_files:
        logger.debug(f"  Found: {receipt_file.relative_to(input_dir)}")
    return receipt_files


def render_ledger(ledger: Ledger):
    """Print the ledger as a numbered table."""
    if not len(ledger):
        click.echo("(ledger is empty)")
        return

    click.echo(f"{'#':>3}  {'CHK':<12} {'Card Type':<32} {'Amount':>12}")
    for index, record in enumerate(ledger):
        click.echo(f"{index:>3}  {record.chk:<12} {record.card_type:<32} {record.display_amount:>12}")
    click.echo(f"{'':>3}  {'TOTAL':<12} {'':<32} {format_amount(ledger.total):>12}")


def echo_notices(engine: ReconciliationEngine):
    for notice in engine.drain_notices():
        click.echo(str(notice), err=notice.level in ("warning", "error"))


def setup(config: Optional[Path], debug: bool) -> Settings:
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
        click.echo("🔍 Debug mode enabled - detailed parsing logs will be shown")
    return load_settings(config)


@click.group()
def cli():
    """Receipt Ledger - Scan payment receipts and reconcile them by CHK."""
    pass


@cli.command()
@click.option('--in', 'input_dir', required=True,
              type=click.Path(exists=True, file_okay=False, path_type=Path),
              help='Input directory containing receipt photos')
@click.option('--out', 'output_path', required=True, type=click.Path(path_type=Path),
              help='Output file (.xlsx or .csv)')
@click.option('--target-chk', default=None, help='Merge every scan into this existing CHK')
@click.option('--summary', is_flag=True, help='Add a total row to the Excel output')
@click.option('--cache', 'cache_dir', default=None, type=click.Path(path_type=Path),
              help='Directory for cached OCR results')
@click.option('--config', default=None, type=click.Path(exists=True, path_type=Path),
              help='YAML settings overriding the defaults')
@click.option('--debug', is_flag=True, help='Enable debug output')
def scan(input_dir: Path,
         output_path: Path,
         target_chk: Optional[str],
         summary: bool,
         cache_dir: Optional[Path],
         config: Optional[Path],
         debug: bool):
    """
    Scan a folder of receipt photos into the ledger and export it.

    Example:
        receipts scan --in ./photos --out ./out/ledger.xlsx --summary
    """
    try:
        settings = setup(config, debug)
        engine = ReconciliationEngine(
            ocr=OCRProcessor(settings.ocr, cache_dir=cache_dir),
            settings=settings
        )

        receipt_files = find_receipt_images(input_dir)
        if not receipt_files:
            logger.warning("No receipt images found!")
            return

        stats = {'processed': 0, 'failed': 0}

        async def process_all():
            with tqdm(total=len(receipt_files), desc="Scanning receipts") as pbar:
                for receipt_file in receipt_files:
                    try:
                        image = CapturedImage.from_file(receipt_file)
                    except (OSError, ValueError) as e:
                        logger.error(f"Skipping {receipt_file.name}: {e}")
                        stats['failed'] += 1
                    else:
                        before = len(engine.notices)
                        await engine.process(image, target_chk=target_chk)
                        if len(engine.notices) > before:
                            stats['failed'] += 1
                        else:
                            stats['processed'] += 1

                    pbar.update(1)
                    pbar.set_postfix(stats)

        asyncio.run(process_all())

        exported = engine.export(output_path, include_summary=summary or None)

        click.echo("\n" + "=" * 50)
        click.echo("SCAN SUMMARY")
        click.echo("=" * 50)
        click.echo(f"Receipts found: {len(receipt_files)}")
        click.echo(f"Processed: {stats['processed']}")
        click.echo(f"Failed: {stats['failed']}")
        click.echo(f"Ledger entries: {len(engine.ledger)}")
        click.echo("")
        render_ledger(engine.ledger)
        echo_notices(engine)
        if exported:
            click.echo(f"\nOutput file: {exported}")

    except Exception as e:
        logger.error(f"Scan failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--config', default=None, type=click.Path(exists=True, path_type=Path),
              help='YAML settings overriding the defaults')
@click.option('--debug', is_flag=True, help='Enable debug output')
def extract(path: Path, config: Optional[Path], debug: bool):
    """Print the fields extracted from one receipt image or OCR text dump."""
    try:
        settings = setup(config, debug)
        if path.suffix.lower() == '.txt':
            text = path.read_text(encoding='utf-8')
        else:
            text = OCRProcessor(settings.ocr).recognize_sync(CapturedImage.from_file(path))

        details = FieldExtractor(settings.extraction).extract_with_details(text)
        record = details['record']
        click.echo(f"CHK:       {record.chk}")
        click.echo(f"Card type: {record.card_type}")
        click.echo(f"Amount:    {record.display_amount}")

        if debug:
            for field_name, line in details['source_lines'].items():
                confidence = details['confidence_scores'][field_name]
                click.echo(f"  {field_name}: {line!r} (confidence: {confidence:.2f})")

    except (OCRError, OSError, ValueError) as e:
        logger.error(f"Extraction failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--out', 'output_path', default='ledger.xlsx', type=click.Path(path_type=Path),
              help='Export file (.xlsx or .csv)')
@click.option('--config', default=None, type=click.Path(exists=True, path_type=Path),
              help='YAML settings overriding the defaults')
@click.option('--debug', is_flag=True, help='Enable debug output')
def camera(output_path: Path, config: Optional[Path], debug: bool):
    """Interactive session: photograph receipts, correct entries, export."""
    settings = setup(config, debug)
    engine = ReconciliationEngine(
        ocr=OCRProcessor(settings.ocr),
        camera=CameraCapture(settings.camera),
        settings=settings
    )
    engine.subscribe(render_ledger)

    try:
        device = engine.start_capture()
        click.echo(f"📷 Camera {device} ready")
    except CaptureError:
        echo_notices(engine)
        click.echo("Continuing without camera; manual entry is still available.")

    actions = {
        'c': "capture receipt",
        'a': "add entry",
        'e': "edit entry",
        'l': "list ledger",
        'r': "reset ledger",
        'x': "export",
        'q': "quit",
    }
    menu = "  ".join(f"[{key}] {label}" for key, label in actions.items())

    try:
        while True:
            click.echo("")
            choice = click.prompt(menu, type=click.Choice(list(actions)), show_choices=False)

            try:
                if choice == 'c':
                    target = click.prompt("Add to existing CHK (blank for none)",
                                          default="", show_default=False)
                    engine.capture_still(target_chk=target or None)
                    asyncio.run(engine.process())
                elif choice == 'a':
                    chk = click.prompt("CHK")
                    card_type = click.prompt("Card type")
                    amount = click.prompt("Amount")
                    engine.add_manual(chk, card_type, amount)
                elif choice == 'e':
                    index = click.prompt("Row #", type=int)
                    current = engine.ledger[index] if 0 <= index < len(engine.ledger) else None
                    chk = click.prompt("CHK", default=current.chk if current else None)
                    card_type = click.prompt("Card type", default=current.card_type if current else None)
                    amount = click.prompt("Amount", default=current.display_amount if current else None)
                    engine.edit_manual(index, chk, card_type, amount)
                elif choice == 'l':
                    render_ledger(engine.ledger)
                elif choice == 'r':
                    if click.confirm("Clear every ledger entry?"):
                        engine.reset()
                elif choice == 'x':
                    exported = engine.export(output_path)
                    if exported:
                        click.echo(f"Exported to {exported}")
                elif choice == 'q':
                    break
            except (CaptureError, EngineBusyError) as e:
                # Already raised as a notice by the engine
                logger.debug(f"Action '{actions[choice]}' rejected: {e}")
            except (LedgerError, OSError, ValueError) as e:
                logger.error(f"Operation failed: {e}")

            echo_notices(engine)
    finally:
        engine.stop_capture()


if __name__ == '__main__':
    cli()
