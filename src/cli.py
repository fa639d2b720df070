#!/usr/bin/env python3
"""
InsightLane CLI
"""

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Optional

from config_manager import ConfigManager
from feature_profiles import PROFILES, get_profile
from generation_client import GenerationClient
from insight_cache import JsonFileCache
from insight_types import RawModelResponse, sessions_from_dicts
from journal_summary import JournalEntry, JournalSummaryService, entries_from_dicts
from logging_setup import setup_from_config
from mood_insights import MoodInsightsService
from orchestrator import ExtractionOrchestrator
from vision_insights import VisionInsightsService, VisionInsightStore


def _read_json_file(path: str):
    with open(path, 'r') as f:
        return json.load(f)


def _read_input(text: Optional[str], file_path: Optional[str]) -> Optional[str]:
    """Text from --text, --file, or piped stdin"""
    if text is not None:
        return text
    if file_path:
        return Path(file_path).read_text()
    if not sys.stdin.isatty():
        return sys.stdin.read()
    return None


def _print_json(data):
    print(json.dumps(data, indent=2, ensure_ascii=False))


class InsightLaneCLI:
    """Command-line interface for InsightLane"""

    def __init__(self, config: Optional[ConfigManager] = None):
        self.config = config or ConfigManager()
        setup_from_config(self.config)
        self.client = GenerationClient(self.config)

    def cmd_parse(self, args):
        """Run the decoding tiers over model output text (no network)"""
        text = _read_input(args.text, args.file)
        if text is None:
            print("No input provided. Use TEXT, --file, or pipe text to stdin.")
            return 1

        orchestrator = ExtractionOrchestrator(get_profile(args.feature, self.config))
        result = orchestrator.decode(RawModelResponse(message_text=text))
        _print_json(result.to_dict())
        return 0

    def cmd_journal(self, args):
        """Summarize a guided-journal session"""
        service = JournalSummaryService(config=self.config, client=self.client)

        if args.entries:
            entries = entries_from_dicts(_read_json_file(args.entries))
        elif args.text:
            entries = [JournalEntry(prompt=args.prompt, response=args.text)]
        else:
            print("No input provided. Use --text or --entries.")
            return 1

        contexts = sessions_from_dicts(_read_json_file(args.sessions)) if args.sessions else []
        _print_json(service.summarize(entries, contexts).to_dict())
        return 0

    def cmd_mood(self, args):
        """Show mood highlights for recent sessions"""
        cache = JsonFileCache(str(self.config.get_path('cache_file')))
        service = MoodInsightsService(config=self.config, client=self.client, cache=cache)

        if args.clear:
            service.clear_insights_cache()
            print("✓ Mood insights cache cleared.")
            return 0

        sessions = sessions_from_dicts(_read_json_file(args.sessions)) if args.sessions else []
        data = service.generate_mood_insights(sessions, force_refresh=args.refresh)
        _print_json(data.to_dict())
        return 0

    def cmd_vision(self, args):
        """Extract a vision insight, or show the latest one"""
        store = VisionInsightStore(str(self.config.get_path('vision_file')))

        if args.latest:
            latest = store.latest()
            if latest is None:
                print("No vision insights stored yet.")
                return 0
            _print_json(asdict(latest))
            return 0

        if not args.messages:
            print("No input provided. Use --messages or --latest.")
            return 1

        service = VisionInsightsService(config=self.config, client=self.client, store=store)
        messages = _read_json_file(args.messages)
        if not args.force and not service.should_extract(messages):
            print("Conversation does not look like a vision exercise (use --force to extract anyway).")
            return 0

        insight = service.extract_vision_insight(messages, args.session_id)
        if insight is None:
            print("No usable messages found.")
            return 0
        _print_json(asdict(insight))
        return 0

    def cmd_config(self, args):
        """Configure InsightLane settings"""
        if args.action == 'get':
            value = self.config.get(args.key)
            print(f"{args.key} = {value}")

        elif args.action == 'set':
            # Try to parse value as JSON for complex types
            try:
                value = json.loads(args.value)
            except json.JSONDecodeError:
                value = args.value

            self.config.set(args.key, value)
            print(f"✓ Set {args.key} = {value}")

        elif args.action == 'list':
            print("Current Configuration:")
            _print_json(self.config.config)
        return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='InsightLane - reflective summaries and insights from a generative model',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Parse command
    parse_parser = subparsers.add_parser(
        'parse',
        help='Decode raw model output into a summary and insights'
    )
    parse_parser.add_argument('text', nargs='?', help='Model output text')
    parse_parser.add_argument('--file', '-f', help='Read model output from file')
    parse_parser.add_argument('--feature', choices=sorted(PROFILES), default='journal',
                              help='Feature profile (default: journal)')

    # Journal command
    journal_parser = subparsers.add_parser(
        'journal',
        help='Summarize a guided-journal session'
    )
    journal_parser.add_argument('--text', '-t', help='Journal response text')
    journal_parser.add_argument('--prompt', default='Journal', help='Question for --text')
    journal_parser.add_argument('--entries', help='JSON file of {"prompt", "response"} entries')
    journal_parser.add_argument('--sessions', help='JSON file of recent sessions (offline fallback)')

    # Mood command
    mood_parser = subparsers.add_parser(
        'mood',
        help='Mood highlights over the last two weeks'
    )
    mood_parser.add_argument('--sessions', help='JSON file of session records')
    mood_parser.add_argument('--refresh', action='store_true', help='Ignore cached insights')
    mood_parser.add_argument('--clear', action='store_true', help='Clear cached insights')

    # Vision command
    vision_parser = subparsers.add_parser(
        'vision',
        help='Extract a vision-of-the-future insight'
    )
    vision_parser.add_argument('--messages', help='JSON file of conversation messages')
    vision_parser.add_argument('--session-id', default='cli', help='Source session id')
    vision_parser.add_argument('--force', action='store_true', help='Skip exercise detection')
    vision_parser.add_argument('--latest', action='store_true', help='Show the latest stored insight')

    # Config command
    config_parser = subparsers.add_parser(
        'config',
        help='View or modify configuration'
    )
    config_parser.add_argument(
        'action',
        choices=['get', 'set', 'list'],
        help='Action to perform'
    )
    config_parser.add_argument('key', nargs='?', help='Config key (dot notation)')
    config_parser.add_argument('value', nargs='?', help='Config value')

    return parser


def main(argv=None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    cli = InsightLaneCLI()

    # Dispatch commands
    command_map = {
        'parse': cli.cmd_parse,
        'journal': cli.cmd_journal,
        'mood': cli.cmd_mood,
        'vision': cli.cmd_vision,
        'config': cli.cmd_config,
    }

    handler = command_map.get(args.command)
    if handler:
        sys.exit(handler(args) or 0)
    else:
        print(f"Unknown command: {args.command}")
        sys.exit(1)


if __name__ == '__main__':
    main()
