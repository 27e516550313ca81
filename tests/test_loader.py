import json
from fractions import Fraction
from pathlib import Path

import pytest

from unit_resolver import run
from unit_resolver.algebra.expression import (
    Binary,
    Operator,
    ParenExpr,
    Power,
    Term,
    Value,
)
from unit_resolver.loader import EntryFormatError, entries_from_dict, load_entries
from unit_resolver.resolver import (
    METRIC_PREFIXES,
    Base,
    ConstantEntry,
    DimensionEntry,
    Identifier,
    Number,
    One,
    Prefix,
    Ref,
    UnitEntry,
)

SI_SYSTEM = Path(__file__).parent.parent / "systems" / "si.toml"


def ref(name: str) -> Ref:
    return Ref(Identifier(name))


def test_load_dimensions():
    entries = entries_from_dict(
        {
            "dimension": [
                {"name": "Length", "base": True},
                {"name": "Dimensionless", "definition": 1},
                {"name": "Area", "definition": [{"base": "Length", "exponent": 2}]},
            ]
        }
    )
    assert entries == [
        DimensionEntry(Identifier("Length"), Base()),
        DimensionEntry(Identifier("Dimensionless"), Term(Value(One()))),
        DimensionEntry(Identifier("Area"), Term(Power(ref("Length"), 2))),
    ]


def test_load_unit():
    (entry,) = entries_from_dict(
        {
            "unit": [
                {
                    "name": "newtons",
                    "symbol": "N",
                    "dimension": "Force",
                    "definition": [
                        "kilograms", "*", "meters", "/", ["seconds", "*", 2]
                    ],
                    "aliases": ["newton"],
                    "prefixes": ["kilo"],
                }
            ]
        }
    )
    assert isinstance(entry, UnitEntry)
    assert entry.symbol == "N"
    assert entry.dimension_annotation == Identifier("Force")
    assert entry.aliases == (Identifier("newton"),)
    assert entry.prefixes == (Prefix.KILO,)
    assert entry.rhs == Binary(
        Binary(Term(Value(ref("kilograms"))), Operator.MUL, Value(ref("meters"))),
        Operator.DIV,
        ParenExpr(
            Binary(Term(Value(ref("seconds"))), Operator.MUL, Value(Number(2.0)))
        ),
    )


def test_load_base_unit_and_constant():
    unit, constant = entries_from_dict(
        {
            "unit": [{"name": "meters", "base": "Length", "prefixes": "metric"}],
            "constant": [
                {
                    "name": "HALF",
                    "definition": [{"base": 4, "exponent": "-1/2"}],
                }
            ],
        },
        source="system.toml",
    )
    assert unit == UnitEntry(
        Identifier("meters"), Base(Identifier("Length")), prefixes=METRIC_PREFIXES
    )
    assert unit.name.span is not None and unit.name.span.file == "system.toml"
    assert constant == ConstantEntry(
        Identifier("HALF"), Term(Power(Number(4.0), Fraction(-1, 2)))
    )


@pytest.mark.parametrize(
    "data",
    [
        {"units": []},
        {"dimension": [{"name": "Length"}]},
        {"dimension": [{"name": "Bad", "definition": [10, "*", "Length"]}]},
        {"unit": [{"name": "bad", "definition": ["meters", "+", "seconds"]}]},
        {"unit": [{"name": "bad", "definition": ["meters", "*"]}]},
        {"unit": [{"name": "bad", "definition": [{"base": "meters"}]}]},
        {"unit": [{"name": "bad", "definition": [{"base": "m", "exponent": 0.5}]}]},
        {"unit": [{"name": "bad", "definition": [True]}]},
        {"unit": [{"name": "bad", "base": "Length", "prefixes": ["kibi"]}]},
        {"unit": [{"name": "bad", "base": "Length", "symbol": 3}]},
        {"constant": [{"definition": 3}]},
    ],
)
def test_malformed_entries(data: dict):
    with pytest.raises(EntryFormatError):
        entries_from_dict(data)


def test_load_si_system():
    entries = load_entries([SI_SYSTEM])
    names = [entry.name.name for entry in entries]
    assert "Velocity" in names
    assert "SPEED_OF_LIGHT" in names


def test_cli(capsys: pytest.CaptureFixture[str]):
    assert run([str(SI_SYSTEM), "--show-units", "--strict"]) == 0
    out = capsys.readouterr().out
    assert "Resolution completed." in out
    assert "Diagnostics: 0" in out
    assert "Base dimensions: length, time, mass" in out
    assert "kilometers (base unit): 1000.0 length" in out


def test_cli_json(capsys: pytest.CaptureFixture[str]):
    assert run([str(SI_SYSTEM), "--json", "--no-prefixes"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["base_dimensions"] == ["length", "time", "mass"]
    units = {unit["name"]: unit for unit in data["units"]}
    assert "kilometers" not in units
    assert units["newtons"]["dimension"] == ["1", "-2", "1"]
    assert units["inches"]["magnitude"] == pytest.approx(0.0254)
    (speed,) = data["constants"]
    assert speed["magnitude"] == 299792458.0


def test_cli_strict(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    file_path = tmp_path / "broken.toml"
    file_path.write_text('[[unit]]\nname = "a"\ndefinition = "b"\n')
    assert run([str(file_path)]) == 0
    assert run([str(file_path), "--strict"]) == 1
    out = capsys.readouterr().out
    assert 'R001 Undefined: Undefined identifier "b".' in out
