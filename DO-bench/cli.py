import os
import sys
import logging
import argparse
import asyncio

# Required: Use uvloop for better performance
import uvloop
asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())

# Add the current directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from configuration import (
    BASE_URL, LOCATION_HINT, TOTAL_CHUNKS, CHUNK_SIZE_BYTES, MAX_CHUNK_SIZE_BYTES,
    MAX_CONCURRENT_CHUNK_PUSHES, CHUNKS_PER_CALL_SWEEP, REQUEST_TIMEOUT_SECONDS,
    DEFAULT_OUTPUT_DIR, DEFAULT_PLOTS_DIR, SERVER_HOST, SERVER_PORT,
    BenchmarkConfig, load_env, parse_sweep,
)
from common.errors import BenchmarkSetupError

# Set up logging (only if not already configured)
if not logging.root.handlers:
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logging.getLogger('aiohttp.access').setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def _sweep_arg(value: str):
    try:
        return parse_sweep(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected comma separated integers, got {value!r}")


class DOBenchmarkCLI:
    """CLI interface for the block Durable Object benchmark."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self):
        """Create the main argument parser."""
        parser = argparse.ArgumentParser(
            description='Durable Object block benchmark CLI',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Serve a local block API for dry runs
  python cli.py serve --port 8787

  # Sweep 1, 10, 20, 30, 40, 50 chunks per call with 5 concurrent pushes
  python cli.py sweep --url https://block.example.workers.dev --location-hint wnam

  # Custom sweep, keep raw push records
  python cli.py sweep --chunks-per-call 1,4,16 --concurrency 16 --record-pushes

  # Plot a saved report
  python cli.py visualize --report-file results/sweep_20241201_120000.json
            """
        )

        subparsers = parser.add_subparsers(dest='command', help='Available commands')

        # Sweep command
        sweep_parser = subparsers.add_parser('sweep', help='Run the chunks-per-call benchmark')
        sweep_parser.add_argument('--url', type=str, default=None,
                                  help=f'Base URL of the block API (default: {BASE_URL})')
        sweep_parser.add_argument('--location-hint', type=str, default=None,
                                  help=f'Durable Object location hint (default: {LOCATION_HINT})')
        sweep_parser.add_argument('--total-chunks', type=int, default=None,
                                  help=f'Chunks sent per sweep (default: {TOTAL_CHUNKS})')
        sweep_parser.add_argument('--chunk-size', type=int, default=None,
                                  help=f'Chunk size in bytes, at most {MAX_CHUNK_SIZE_BYTES} (default: {CHUNK_SIZE_BYTES})')
        sweep_parser.add_argument('--concurrency', type=int, default=None,
                                  help=f'Maximum concurrent pushes (default: {MAX_CONCURRENT_CHUNK_PUSHES})')
        sweep_parser.add_argument('--chunks-per-call', type=_sweep_arg, default=None,
                                  help=f'Comma separated chunks-per-call values (default: {",".join(map(str, CHUNKS_PER_CALL_SWEEP))})')
        sweep_parser.add_argument('--request-timeout', type=float, default=None,
                                  help=f'Per-request timeout in seconds, 0 = none (default: {REQUEST_TIMEOUT_SECONDS})')
        sweep_parser.add_argument('--record-pushes', action='store_true',
                                  help='Log every push and save raw push records to Parquet')
        sweep_parser.add_argument('--output-dir', type=str, default=DEFAULT_OUTPUT_DIR,
                                  help=f'Directory for the JSON report (default: {DEFAULT_OUTPUT_DIR})')
        sweep_parser.add_argument('--cleanup', action='store_true',
                                  help='Free the block storage after the last sweep')

        # Serve command
        serve_parser = subparsers.add_parser('serve', help='Serve a local block API')
        serve_parser.add_argument('--host', type=str, default=SERVER_HOST,
                                  help=f'Bind address (default: {SERVER_HOST})')
        serve_parser.add_argument('--port', type=int, default=SERVER_PORT,
                                  help=f'Port (default: {SERVER_PORT})')
        serve_parser.add_argument('--chunk-size', type=int, default=MAX_CHUNK_SIZE_BYTES,
                                  help=f'Chunk size the block splits bodies by (default: {MAX_CHUNK_SIZE_BYTES})')
        serve_parser.add_argument('--delay', type=float, default=0.0,
                                  help='Artificial latency per PUT in seconds (default: 0)')

        # Visualize command
        visualize_parser = subparsers.add_parser('visualize', help='Generate plots from a sweep report')
        visualize_parser.add_argument('--report-file', type=str, required=True,
                                      help='Path to the JSON sweep report')
        visualize_parser.add_argument('--parquet-file', type=str, default=None,
                                      help='Optional Parquet file with raw push records')
        visualize_parser.add_argument('--output-dir', type=str, default=DEFAULT_PLOTS_DIR,
                                      help=f'Output directory for generated plots (default: {DEFAULT_PLOTS_DIR})')

        return parser

    def build_config(self, args) -> BenchmarkConfig:
        """Flags over DO_BENCH_* environment variables over defaults.

        Raises:
            ConfigurationError: If an environment override is malformed
        """
        config = load_env()
        overrides = {
            'base_url': args.url,
            'location_hint': args.location_hint,
            'total_chunks': args.total_chunks,
            'chunk_size_bytes': args.chunk_size,
            'max_concurrency': args.concurrency,
            'chunks_per_call_sweep': args.chunks_per_call,
            'request_timeout_seconds': args.request_timeout,
        }
        for name, value in overrides.items():
            if value is not None:
                setattr(config, name, value)
        config.record_pushes = args.record_pushes
        return config

    async def run_sweep(self, args):
        """Run the chunks-per-call benchmark."""
        from commands.benchmark import BenchmarkRunner

        logger.info("=== Chunks-per-call Benchmark ===")

        try:
            runner = BenchmarkRunner(self.build_config(args), output_dir=args.output_dir,
                                     cleanup=args.cleanup)
            await runner.run_benchmark()
        except BenchmarkSetupError as e:
            logger.error(f"Benchmark aborted: {e}")
            return 1

        logger.info("Benchmark completed successfully")
        return 0

    def run_serve(self, args):
        """Serve the local block API."""
        from systems.block_server import run_server

        logger.info("=== Local Block API ===")
        run_server(args.host, args.port, chunk_size=args.chunk_size, delay_seconds=args.delay)
        return 0

    def run_visualize(self, args):
        """Run the visualization phase."""
        try:
            from commands.visualiser import BenchmarkVisualizer

            logger.info("=== Visualization Phase ===")

            if not os.path.exists(args.report_file):
                logger.error(f"Report file not found: {args.report_file}")
                return 1
            if args.parquet_file and not os.path.exists(args.parquet_file):
                logger.error(f"Parquet file not found: {args.parquet_file}")
                return 1

            visualizer = BenchmarkVisualizer(args.report_file, args.output_dir, args.parquet_file)
            plots = visualizer.create_all_plots()

            if plots:
                logger.info(f"Successfully created {len(plots)} plots in {args.output_dir}")
                for plot in plots:
                    logger.info(f"  - {plot}")
                return 0
            else:
                logger.error("No plots were created")
                return 1

        except Exception as e:
            logger.error(f"Error in visualization phase: {e}")
            return 1

    def run(self, args=None):
        """Run the CLI with the given arguments."""
        if args is None:
            args = sys.argv[1:]

        parsed_args = self.parser.parse_args(args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            if parsed_args.command == 'sweep':
                return asyncio.run(self.run_sweep(parsed_args))
            elif parsed_args.command == 'serve':
                return self.run_serve(parsed_args)
            elif parsed_args.command == 'visualize':
                return self.run_visualize(parsed_args)
            else:
                logger.error(f"Unknown command: {parsed_args.command}")
                return 1

        except KeyboardInterrupt:
            logger.info("Operation interrupted by user")
            return 1
        except Exception as e:
            logger.error(f"Unexpected error: {e}")
            return 1


def main():
    """Main entry point."""
    cli = DOBenchmarkCLI()
    sys.exit(cli.run())


if __name__ == '__main__':
    main()
