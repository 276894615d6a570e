#!/usr/bin/env python3
"""
Broadcast random signed documents at a fixed rate and concurrency.

Usage:
    # Against a mock service, 10 parallel tasks for 30 seconds, unbounded rate
    surge --connections 10 --time 30 --use-mock

    # Against a real service, 100 documents per second
    surge -c 20 -t 60 -r 100 --url http://localhost:3000 --identity-file identity.json

    # Per document lines
    surge -c 5 -t 10 --use-mock --log-levels info,worker=trace
"""

import argparse
import asyncio
import os
import signal
import sys
from typing import Optional

from surge.documents import (
  DOCUMENT_TYPES,
  HttpDocumentSubmitter,
  Identity,
  MockSubmitter,
  MockSubmitterConfig,
  RandomDocumentFactory,
  get_document_type,
  get_service_url,
  load_identity,
)
from surge.load import ConfigurationError, Dispatcher, LoadTestConfig, LoadTestSummary
from surge.load.config import DEFAULT_REPORT_INTERVAL, env_float, env_int
from surge.logs import apply_log_levels, get_logger

# Contract defining the built-in document types
DEFAULT_CONTRACT_ID = "GWRSAVFMjXx8HpQFaNJMqBV7MBgMK4br5UESsB4S31Ec"

EXIT_OK = 0
EXIT_CONFIGURATION_ERROR = 2


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
  parser = argparse.ArgumentParser(description="Broadcast random documents under a rate and concurrency limit")

  connections = env_int("SURGE_CONNECTIONS")
  parser.add_argument(
    "-c",
    "--connections",
    type=int,
    default=connections,
    required=connections is None,
    help="The number of requests in flight at the same time",
  )

  duration = env_float("SURGE_TIME")
  parser.add_argument(
    "-t",
    "--time",
    type=float,
    default=duration,
    required=duration is None,
    help="The duration (in seconds) for which to run the load test",
  )

  parser.add_argument(
    "-r",
    "--rate",
    type=float,
    default=env_float("SURGE_RATE") or 0,
    help="Number of documents to send per second, 0 for unbounded",
  )

  report_interval = env_float("SURGE_REPORT_INTERVAL")
  parser.add_argument(
    "--report-interval",
    type=float,
    default=DEFAULT_REPORT_INTERVAL if report_interval is None else report_interval,
    help="Seconds between progress lines",
  )

  parser.add_argument(
    "--url",
    default=get_service_url(),
    help="Document service base URL",
  )

  parser.add_argument(
    "--identity-file",
    default=os.environ.get("SURGE_IDENTITY_FILE"),
    help="JSON file with the identity owning and signing the documents",
  )

  parser.add_argument(
    "--contract-id",
    default=os.environ.get("SURGE_CONTRACT_ID", DEFAULT_CONTRACT_ID),
    help="Contract defining the document type",
  )

  parser.add_argument(
    "--document-type",
    choices=sorted(DOCUMENT_TYPES),
    default="preorder",
    help="Type of the generated documents",
  )

  parser.add_argument(
    "--use-mock",
    action="store_true",
    help="Use an in-process mock service instead of the real one",
  )

  parser.add_argument(
    "--mock-latency",
    type=float,
    default=50.0,
    help="Mock service latency in ms",
  )

  parser.add_argument(
    "--mock-jitter",
    type=float,
    default=20.0,
    help="Mock service latency jitter in ms",
  )

  parser.add_argument(
    "--mock-failure-rate",
    type=float,
    default=0.0,
    help="Probability that the mock service rejects a document",
  )

  parser.add_argument(
    "--log-levels",
    default=os.environ.get("SURGE_LOG_LEVELS"),
    help="Log levels, e.g. 'debug' or 'info,worker=trace'",
  )

  return parser.parse_args(argv)


def describe_run(args: argparse.Namespace) -> str:
  """Prefix of the start and summary lines naming the document type and its contract."""
  return f"{args.document_type} contract={args.contract_id}"


def resolve_identity(args: argparse.Namespace) -> Identity:
  identity = load_identity(args.identity_file)
  if identity is not None:
    return identity
  if args.use_mock:
    return Identity.ephemeral(get_document_type(args.document_type).security_level_requirement)
  raise ConfigurationError("identity file", None, "required unless --use-mock is given")


async def run_load_test(dispatcher: Dispatcher) -> LoadTestSummary:
  """
  Run the dispatcher, stopping it gracefully on SIGINT and SIGTERM.
  """
  loop = asyncio.get_running_loop()
  installed = []
  for sig in (signal.SIGINT, signal.SIGTERM):
    try:
      loop.add_signal_handler(sig, dispatcher.stop, f"received {sig.name}")
      installed.append(sig)
    except (NotImplementedError, RuntimeError):
      # Signal handlers are only available on the main thread of Unix event loops
      pass

  try:
    return await dispatcher.run()
  finally:
    for sig in installed:
      loop.remove_signal_handler(sig)


async def run(
  args: argparse.Namespace,
  config: LoadTestConfig,
  factory: RandomDocumentFactory,
  identity: Identity,
  mock_config: Optional[MockSubmitterConfig] = None,
) -> LoadTestSummary:
  logger = get_logger("cli")

  if mock_config is not None:
    logger.info("Using mock document service")
    submitter = MockSubmitter(mock_config)
    dispatcher = Dispatcher(config, factory, submitter, identity, description=describe_run(args))
    return await run_load_test(dispatcher)

  logger.info(f"Using document service at {args.url}")
  async with HttpDocumentSubmitter(args.url) as submitter:
    dispatcher = Dispatcher(config, factory, submitter, identity, description=describe_run(args))
    return await run_load_test(dispatcher)


def main(argv: Optional[list[str]] = None) -> int:
  try:
    args = parse_args(argv)
  except ConfigurationError as e:
    print(f"surge: {e}", file=sys.stderr)
    return EXIT_CONFIGURATION_ERROR

  try:
    apply_log_levels(args.log_levels)
  except ValueError as e:
    print(f"surge: {e}", file=sys.stderr)
    return EXIT_CONFIGURATION_ERROR

  logger = get_logger("cli")

  try:
    config = LoadTestConfig.create(
      concurrency=args.connections,
      duration=args.time,
      rate=args.rate,
      report_interval=args.report_interval,
    )
    identity = resolve_identity(args)
    factory = RandomDocumentFactory(
      get_document_type(args.document_type),
      contract_id=args.contract_id,
      identity=identity,
    )
    mock_config = None
    if args.use_mock:
      mock_config = MockSubmitterConfig(
        latency_ms=args.mock_latency,
        latency_jitter_ms=args.mock_jitter,
        failure_rate=args.mock_failure_rate,
      )
  except ConfigurationError as e:
    logger.error(str(e))
    return EXIT_CONFIGURATION_ERROR

  logger.info(f"Identity {identity.id} owns the generated documents")
  asyncio.run(run(args, config, factory, identity, mock_config))
  return EXIT_OK


if __name__ == "__main__":
  sys.exit(main())
