"""
SiteGuard CLI

Command-line interface for scanning one website.
"""

import asyncio
import argparse
import json
import sys
from typing import Dict, List, Optional
import logging

from siteguard.core.config import ConfigStore, load_config_file, settings
from siteguard.errors import ScanTimeoutError, TargetValidationError
from siteguard.scanner.orchestrator import ScanOrchestrator
from siteguard.scanner.schemas import Report

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID_TARGET = 2
EXIT_TIMEOUT = 3


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        prog='siteguard',
        description='SiteGuard - website security posture scanner',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scan a site
  siteguard scan https://example.com

  # Use headers captured elsewhere instead of a HEAD request
  siteguard scan https://example.com --headers-file headers.json

  # Load credentials and limits from a config file, save the report
  siteguard scan https://example.com --config siteguard.json -o report.json
        """
    )

    parser.add_argument(
        'command',
        choices=['scan'],
        help='Command to execute'
    )

    parser.add_argument(
        'url',
        help='Target URL (http or https)'
    )

    parser.add_argument(
        '--headers-file',
        help='JSON object of root-document response headers'
    )

    parser.add_argument(
        '--config',
        help='JSON config file ({credentials: {...}, settings: {...}})'
    )

    parser.add_argument(
        '--timeout',
        type=float,
        default=None,
        help='Overall scan timeout in seconds (default: checkTimeout setting)'
    )

    parser.add_argument(
        '-o', '--output',
        help='Output file (JSON format)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose output'
    )

    return parser.parse_args(argv)


def load_headers(path: str) -> Dict[str, str]:
    """Load a header mapping from a JSON file"""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object of header names to values")
    return {str(k): str(v) for k, v in data.items()}


def display_report(report: Report, verbose: bool = False) -> None:
    """Display the report on the console"""
    print("\n" + "=" * 80)
    print("SECURITY SCAN REPORT")
    print("=" * 80)
    print(f"\n  Target:        {report.target.url}")
    print(f"  Generated:     {report.generated_at.isoformat()}")
    print(f"  Overall Score: {report.overall_score}/100 ({report.rating})")

    print("\nChecks:")
    for name, result in report.probe_results.items():
        print(f"  {name.value:<20} {result.status.value:<8} {result.score:>3}  {result.message}")
        if verbose:
            for key, value in result.details.items():
                if key != "message":
                    print(f"      {key}: {value}")

    print("\n" + "=" * 80 + "\n")


def save_report(report: Report, output_file: str) -> None:
    """Save the report to a JSON file"""
    with open(output_file, 'w', encoding='utf-8') as f:
        f.write(report.model_dump_json(indent=2))
    logger.info(f"Report saved to {output_file}")


async def scan_command(args) -> int:
    """Execute scan command"""
    config = load_config_file(args.config) if args.config else settings.to_scan_config()
    headers = load_headers(args.headers_file) if args.headers_file else None

    orchestrator = ScanOrchestrator(ConfigStore(config))
    try:
        report = await orchestrator.scan_with_timeout(args.url, headers=headers, timeout=args.timeout)
    except TargetValidationError as e:
        print(f"Cannot scan this target: {e.message}", file=sys.stderr)
        return EXIT_INVALID_TARGET
    except ScanTimeoutError as e:
        print(f"Scan failed: {e}", file=sys.stderr)
        return EXIT_TIMEOUT

    display_report(report, args.verbose)

    if args.output:
        save_report(report, args.output)

    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.command == 'scan':
        return asyncio.run(scan_command(args))
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
