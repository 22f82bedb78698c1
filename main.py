#!/usr/bin/env python3

import argparse
import json
import logging
import sys
from typing import List
from pathlib import Path

from addressbook.core.contact import Contact
from addressbook.core.errors import ContactError
from addressbook.core.service import ContactService
from addressbook.io.csv import CSVHandler
from addressbook.io.store import InMemoryContactStore
from addressbook.io.vcard import VCardHandler


def load_contacts(input_paths: List[Path]) -> List[Contact]:
    """Load contacts from input files"""
    contacts = []
    csv_handler = CSVHandler()
    vcard_handler = VCardHandler()

    logging.info(f"Loading contacts from {len(input_paths)} files")
    for path in input_paths:
        logging.debug(f"Processing file: {path}")
        if path.suffix.lower() == ".csv":
            new_contacts = csv_handler.read_csv(str(path))
        elif path.suffix.lower() in [".vcf", ".vcard"]:
            new_contacts = vcard_handler.read_vcard(str(path))
        else:
            logging.warning(f"Unsupported file format: {path}")
            continue
        logging.debug(f"Loaded {len(new_contacts)} contacts from {path}")
        contacts.extend(new_contacts)

    return contacts


def open_store(store_path: Path) -> InMemoryContactStore:
    """Load the CSV backing file into an in-memory store, keeping ids"""
    store = InMemoryContactStore()
    if store_path.exists():
        store.load(CSVHandler().read_csv(str(store_path)))
        logging.debug(f"Loaded {store.count()} contacts from {store_path}")
    return store


def save_store(store: InMemoryContactStore, store_path: Path) -> None:
    CSVHandler().write_csv(store.list_all(), str(store_path))
    logging.info(f"Saved {store.count()} contacts to {store_path}")


def export_contacts(contacts: List[Contact], output: Path) -> None:
    if output.suffix.lower() in [".vcf", ".vcard"]:
        VCardHandler().write_vcard(contacts, str(output))
    else:
        CSVHandler().write_csv(contacts, str(output))
    logging.info(f"Exported {len(contacts)} contacts to {output}")


def run(args: argparse.Namespace) -> None:
    store_path = Path(args.store)
    store = open_store(store_path)
    service = ContactService(store)

    if args.command == "duplicates":
        pairs = service.detect_duplicates()
        for pair in pairs:
            print(f"{pair['contact1Id']} <-> {pair['contact2Id']}: {pair['scorePercent']}%")
        print(f"{len(pairs)} potential duplicate pair(s) detected")

    elif args.command == "merge":
        outcome = service.merge_contacts(args.target_id, args.source_id)
        save_store(store, store_path)
        print(json.dumps(outcome, indent=2, ensure_ascii=False))

    elif args.command == "stats":
        result = service.statistics(canonical_countries=args.canonical_countries)
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))

    elif args.command == "import":
        result = service.import_contacts(load_contacts([Path(p) for p in args.inputs]))
        save_store(store, store_path)
        for message in result.messages:
            print(message)
        print(result)

    elif args.command == "export":
        export_contacts(service.get_all_contacts(), Path(args.output))

    elif args.command == "favorite":
        contact = service.toggle_favorite(args.contact_id)
        save_store(store, store_path)
        print(f"{contact.full_name}: favorite = {contact.favorite}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Manage an address book and merge duplicate contacts."
    )
    parser.add_argument(
        "--store",
        "-s",
        default="contacts.csv",
        help="CSV file holding the address book",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("duplicates", help="List likely duplicate contact pairs")

    merge_parser = subparsers.add_parser(
        "merge", help="Fill blank fields of TARGET from SOURCE, then delete SOURCE"
    )
    merge_parser.add_argument("target_id", type=int)
    merge_parser.add_argument("source_id", type=int)

    stats_parser = subparsers.add_parser("stats", help="Print address book statistics")
    stats_parser.add_argument(
        "--canonical-countries",
        action="store_true",
        help="Group countries by their ISO name",
    )

    import_parser = subparsers.add_parser("import", help="Import contacts from .csv or .vcf files")
    import_parser.add_argument("inputs", nargs="+")

    export_parser = subparsers.add_parser("export", help="Export contacts to a .csv or .vcf file")
    export_parser.add_argument("output")

    favorite_parser = subparsers.add_parser("favorite", help="Toggle the favorite marker of a contact")
    favorite_parser.add_argument("contact_id", type=int)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    # Configure logging based on verbose flag
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s"
    )

    try:
        run(args)
    except ContactError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logging.error(f"Error processing contacts: {e}")
        raise
    return 0


if __name__ == "__main__":
    sys.exit(main())
