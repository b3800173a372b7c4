from contactbook.domain.contact import Contact
from contactbook.services.exchange_svc import (
    CSV_HEADER,
    export_csv,
    import_csv,
    read_contacts_csv,
    write_contacts_csv,
)


def test_read_drops_nameless_rows_and_pads_missing_cells(tmp_path):
    src = tmp_path / "in.csv"
    src.write_text(
        "First Name,Last Name,Email,Mobile\n"
        "Ada,Lovelace,ada@example.com,+44123\n"
        ",,nobody@example.com,000\n"
        " , ,,\n"
        "Grace,Hopper\n"
        ",Turing,,\n",
        encoding="utf-8",
    )
    got = read_contacts_csv(str(src))
    assert got == [
        Contact(0, "Ada", "Lovelace", "ada@example.com", "+44123"),
        Contact(0, "Grace", "Hopper", "", ""),
        Contact(0, "", "Turing", "", ""),
    ]


def test_read_keeps_mobile_as_text(tmp_path):
    src = tmp_path / "in.csv"
    src.write_text("First Name,Last Name,Email,Mobile\nAda,,,0044123\n", encoding="utf-8")
    assert read_contacts_csv(str(src))[0].mobile == "0044123"


def test_read_empty_file(tmp_path):
    empty = tmp_path / "empty.csv"
    empty.write_text("", encoding="utf-8")
    assert read_contacts_csv(str(empty)) == []
    header_only = tmp_path / "header.csv"
    header_only.write_text("First Name,Last Name,Email,Mobile\n", encoding="utf-8")
    assert read_contacts_csv(str(header_only)) == []


def test_write_quotes_commas(tmp_path):
    dest = tmp_path / "out.csv"
    n = write_contacts_csv([Contact(1, "Ada", "Lovelace, Countess", "", "+44123")], str(dest))
    assert n == 1
    text = dest.read_text(encoding="utf-8-sig")
    lines = text.splitlines()
    assert lines[0] == ",".join(CSV_HEADER)
    assert lines[1] == 'Ada,"Lovelace, Countess",,+44123'
    assert read_contacts_csv(str(dest)) == [Contact(0, "Ada", "Lovelace, Countess", "", "+44123")]


def test_import_and_export_through_service(svc, tmp_path):
    src = tmp_path / "in.csv"
    src.write_text(
        "First Name,Last Name,Email,Mobile\nGrace,Hopper,,\nAda,Lovelace,ada@example.com,+44123\n,,x@y.zz,\n",
        encoding="utf-8",
    )
    found, ok = import_csv(svc, str(src))
    assert (found, ok) == (2, True)
    assert svc.count() == 2

    dest = tmp_path / "out.csv"
    assert export_csv(svc, str(dest)) == 2
    lines = dest.read_text(encoding="utf-8-sig").splitlines()
    # exported in name order
    assert lines[1].startswith("Grace,Hopper")
    assert lines[2].startswith("Ada,Lovelace")


def test_import_nothing_valid_is_not_a_store_call(svc, tmp_path):
    src = tmp_path / "in.csv"
    src.write_text("First Name,Last Name,Email,Mobile\n,,a@b.co,\n", encoding="utf-8")
    assert import_csv(svc, str(src)) == (0, True)
    assert svc.count() == 0


def test_import_rolls_back_on_store_rejection(svc, tmp_path, reject_email_trigger):
    src = tmp_path / "in.csv"
    src.write_text(
        f"First Name,Last Name,Email,Mobile\nAda,Lovelace,,\nBad,Row,{reject_email_trigger},\n",
        encoding="utf-8",
    )
    assert import_csv(svc, str(src)) == (2, False)
    assert svc.count() == 0
