#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Contacts (MariaDB / SQLite)

Commands:
  init                Create the contacts and operation_log tables if missing
  ping                Check that the configured store answers
  add / update        Write one contact (validated: a name is required, email must be well-formed)
  delete / show       Remove or print one contact by id
  list                List contacts, by name or by --sort COLUMN [--desc]
  search              Case-insensitive substring search over names, email and mobile
  count               Print the number of stored contacts
  import / export     Exchange contacts as CSV (First Name,Last Name,Email,Mobile)
  wipe                Delete every contact (requires --yes)

Notes:
- Connection settings come from config.yaml (`db:` mapping) and CONTACTS_DB_* env vars;
  CONTACTS_DB_PATH selects an SQLite file instead of a server.
- An import is all-or-nothing: if any row is rejected by the store, nothing is imported.
"""

import argparse
import logging
import sys

from contactbook.db import get_db_settings, open_database
from contactbook.errors import ContactStoreError, NotFoundError
from contactbook.logs import LogContext
from contactbook.services.contact_svc import ContactService
from contactbook.services.exchange_svc import export_csv, import_csv


def _print_contacts(contacts):
    if not contacts:
        print("(empty)")
        return
    for c in contacts:
        print(f"{c.id:>5}  {c.first_name:<20} {c.last_name:<20} {c.email:<30} {c.mobile}")


def _audit(svc: ContactService, log: LogContext, result: str = "OK", err: str | None = None):
    try:
        log.write(svc.db, result, err)
    except svc.db.errors as e:
        print(f"[WARN] operation log not written: {e}", file=sys.stderr)


# ---------------- Commands ----------------

def cmd_init(svc: ContactService, args):
    svc.ensure_schema()
    print("Database schema initialized.")


def cmd_ping(svc: ContactService, args):
    if not svc.test_connection():
        raise SystemExit("Connection failed")
    print(f"Connection successful: {svc.db.target}")


def cmd_add(svc: ContactService, args):
    log = LogContext("CREATE_CONTACT", user="cli")
    new_id = svc.insert(args.first or "", args.last or "", args.email or "", args.mobile or "", log)
    _audit(svc, log)
    print(f"Contact added with ID {new_id}.")


def cmd_update(svc: ContactService, args):
    current = svc.get_by_id(args.id)
    if current is None:
        raise NotFoundError(args.id)
    log = LogContext("UPDATE_CONTACT", user="cli")
    svc.update(
        args.id,
        current.first_name if args.first is None else args.first,
        current.last_name if args.last is None else args.last,
        current.email if args.email is None else args.email,
        current.mobile if args.mobile is None else args.mobile,
        log,
    )
    _audit(svc, log)
    print(f"Contact {args.id} updated.")


def cmd_delete(svc: ContactService, args):
    log = LogContext("DELETE_CONTACT", user="cli")
    svc.delete(args.id, log)
    _audit(svc, log)
    print(f"Contact {args.id} deleted.")


def cmd_show(svc: ContactService, args):
    c = svc.get_by_id(args.id)
    if c is None:
        raise SystemExit(f"Contact not found with ID: {args.id}")
    _print_contacts([c])


def cmd_list(svc: ContactService, args):
    if args.sort:
        _print_contacts(svc.get_sorted(args.sort, not args.desc))
    else:
        _print_contacts(svc.get_all())


def cmd_search(svc: ContactService, args):
    _print_contacts(svc.search(args.query))


def cmd_count(svc: ContactService, args):
    print(f"Total contacts: {svc.count()}")


def cmd_import(svc: ContactService, args):
    log = LogContext("IMPORT_CONTACTS", user="cli")
    found, ok = import_csv(svc, args.file, log)
    if not found:
        print("No valid contacts found in CSV")
        return
    if not ok:
        _audit(svc, log, "ERROR", "import rolled back")
        raise SystemExit("Failed to import contacts")
    _audit(svc, log)
    print(f"Successfully imported {found} contacts")


def cmd_export(svc: ContactService, args):
    n = export_csv(svc, args.file)
    print(f"Successfully exported {n} contacts")


def cmd_wipe(svc: ContactService, args):
    if not args.yes:
        raise SystemExit("Refusing to delete all contacts without --yes")
    log = LogContext("DELETE_ALL_CONTACTS", user="cli")
    svc.delete_all(log)
    _audit(svc, log)
    print("All contacts deleted.")


# ---------------- Entry ----------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Contacts (MariaDB / SQLite)")
    parser.add_argument("--config", default=None, help="path to config.yaml")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers()

    p_init = sub.add_parser("init", help="create tables and indexes")
    p_init.set_defaults(func=cmd_init)

    p_ping = sub.add_parser("ping", help="test the database connection")
    p_ping.set_defaults(func=cmd_ping)

    p_add = sub.add_parser("add", help="add a contact")
    p_add.add_argument("--first", required=False)
    p_add.add_argument("--last", required=False)
    p_add.add_argument("--email", required=False)
    p_add.add_argument("--mobile", required=False)
    p_add.set_defaults(func=cmd_add)

    p_upd = sub.add_parser("update", help="update a contact; omitted fields keep their value")
    p_upd.add_argument("id", type=int)
    p_upd.add_argument("--first", required=False)
    p_upd.add_argument("--last", required=False)
    p_upd.add_argument("--email", required=False)
    p_upd.add_argument("--mobile", required=False)
    p_upd.set_defaults(func=cmd_update)

    p_del = sub.add_parser("delete", help="delete a contact")
    p_del.add_argument("id", type=int)
    p_del.set_defaults(func=cmd_delete)

    p_show = sub.add_parser("show", help="show a contact")
    p_show.add_argument("id", type=int)
    p_show.set_defaults(func=cmd_show)

    p_list = sub.add_parser("list", help="list contacts")
    p_list.add_argument("--sort", required=False, help="id/first_name/last_name/email/mobile")
    p_list.add_argument("--desc", action="store_true")
    p_list.set_defaults(func=cmd_list)

    p_search = sub.add_parser("search", help="search contacts")
    p_search.add_argument("query")
    p_search.set_defaults(func=cmd_search)

    p_count = sub.add_parser("count", help="count contacts")
    p_count.set_defaults(func=cmd_count)

    p_imp = sub.add_parser("import", help="import contacts from CSV")
    p_imp.add_argument("file")
    p_imp.set_defaults(func=cmd_import)

    p_exp = sub.add_parser("export", help="export contacts to CSV")
    p_exp.add_argument("file")
    p_exp.set_defaults(func=cmd_export)

    p_wipe = sub.add_parser("wipe", help="delete all contacts")
    p_wipe.add_argument("--yes", action="store_true")
    p_wipe.set_defaults(func=cmd_wipe)
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        with open_database(get_db_settings(args.config)) as db:
            args.func(ContactService(db), args)
    except ContactStoreError as e:
        raise SystemExit(str(e))
    except (OSError, ValueError) as e:
        raise SystemExit(f"Error: {e}")


if __name__ == "__main__":
    main()
