# scripts/smoke.py
"""
Live smoke test for the MediTerm translation pipeline.

Runs one real translation against the configured provider, so it needs a
key in `.env` (MEDITERM_API_KEY or the provider's own variable).

Usage
-----
1. Built-in sample text and dictionary, professional mode:
    $ python scripts/smoke.py

2. Your own text and dictionary:
    $ python scripts/smoke.py --file notes.txt --dictionary terms.json --mode fast
"""

import argparse
import asyncio
import logging
import sys
import traceback
from pathlib import Path

from dotenv import load_dotenv

from mediterm.core.dictionary import TermDictionary, load_dictionary
from mediterm.core.settings import load_settings
from mediterm.pipelines.translation import Translator

env_path = Path(".env")
if env_path.exists():
    load_dotenv(env_path)
    print("✅ Loaded .env file")
else:
    print("⚠️  Warning: No .env file found! The provider call may fail without a key.")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

DEFAULT_TEXT = """患者三天前出现普通感冒症状，伴有发热和咳嗽。
查体提示上呼吸道感染，建议多饮水并注意休息。"""

DEFAULT_TERMS = TermDictionary.from_records(
    [
        {"id": "t1", "label_a": "普通感冒", "label_b": "common cold", "core_a": "感冒"},
        {"id": "t2", "label_a": "上呼吸道感染", "label_b": "upper respiratory tract infection"},
        {"id": "t3", "label_a": "发热", "label_b": "fever", "aliases": ["发烧"]},
        {"id": "t4", "label_a": "咳嗽", "label_b": "cough"},
    ]
)


def main() -> None:
    """Execute the smoke test workflow."""
    parser = argparse.ArgumentParser(description="Run MediTerm Smoke Test")
    parser.add_argument("--file", "-f", type=str, help="Path to a UTF-8 text file")
    parser.add_argument("--dictionary", "-d", type=str, help="Path to a JSON term dictionary")
    parser.add_argument("--mode", choices=["fast", "professional"], default="professional")
    args = parser.parse_args()

    text = Path(args.file).read_text(encoding="utf-8") if args.file else DEFAULT_TEXT
    terms = load_dictionary(args.dictionary) if args.dictionary else DEFAULT_TERMS
    config = load_settings().completion_config()

    try:
        print(f"... Translating ({args.mode}, provider={config.provider}) ...")
        result = asyncio.run(
            Translator().translate(
                text,
                args.mode,
                config,
                dictionary=terms,
                on_progress=lambda label: print(f"  -> {label}"),
            )
        )
    except Exception as exc:
        print(f"\n❌ Pipeline Crashed: {exc}")
        traceback.print_exc()
        return

    print("\n" + "=" * 60)
    print("✅ Pipeline Finished Successfully!")
    print("=" * 60)

    print("\n📖 Glossary:")
    for entry in result.glossary:
        print(f"  {entry.as_prompt_line()}")

    print(f"\n📝 Translation ({result.chunk_count} chunk(s)):\n{result.final_text}")

    if result.review_notes:
        print(f"\n🔍 Review Notes:\n{result.review_notes}")

    if result.alignments:
        print("\n🔗 Alignments:")
        for alignment in result.alignments:
            print(
                f"  {alignment.term_id}: source={alignment.source_spans} "
                f"target={alignment.target_spans}"
            )


if __name__ == "__main__":
    main()
