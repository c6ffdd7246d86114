"""Parser for the record inspection command language.

Grammar::

    show types
    describe <Type>
    from <Type> [where <field> = <value>]
    get <Type> <id>
    next id <Type> [for <VARIANT>]
    delete <Type> <id>
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import ply.yacc as yacc

from hospital_records.parsing.command_lexer import CommandLexer


@dataclass
class Condition:
    """A single-field equality condition."""

    field: str
    value: Any


@dataclass
class ShowTypesCommand:
    """List the storable record types."""

    pass


@dataclass
class DescribeCommand:
    """Show a type's field catalog."""

    type_name: str


@dataclass
class SelectCommand:
    """List the records of a type, optionally filtered by one field."""

    type_name: str
    where: Condition | None = None


@dataclass
class GetCommand:
    type_name: str
    record_id: str


@dataclass
class NextIdCommand:
    """Show the next identifier for a type, or for one of its variants."""

    type_name: str
    variant: str | None = None


@dataclass
class DeleteCommand:
    type_name: str
    record_id: str


Command = ShowTypesCommand | DescribeCommand | SelectCommand | GetCommand | NextIdCommand | DeleteCommand


class CommandParser:
    """Parser for inspection commands."""

    tokens = CommandLexer.tokens

    def __init__(self) -> None:
        self.lexer = CommandLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore

    def p_statement(self, p: yacc.YaccProduction) -> None:
        """statement : command SEMICOLON
                     | command"""
        p[0] = p[1]

    def p_command_show_types(self, p: yacc.YaccProduction) -> None:
        """command : SHOW TYPES"""
        p[0] = ShowTypesCommand()

    def p_command_describe(self, p: yacc.YaccProduction) -> None:
        """command : DESCRIBE name"""
        p[0] = DescribeCommand(type_name=p[2])

    def p_command_select(self, p: yacc.YaccProduction) -> None:
        """command : FROM name"""
        p[0] = SelectCommand(type_name=p[2])

    def p_command_select_where(self, p: yacc.YaccProduction) -> None:
        """command : FROM name WHERE name EQ value"""
        p[0] = SelectCommand(type_name=p[2], where=Condition(field=p[4], value=p[6]))

    def p_command_get(self, p: yacc.YaccProduction) -> None:
        """command : GET name record_id"""
        p[0] = GetCommand(type_name=p[2], record_id=p[3])

    def p_command_next_id(self, p: yacc.YaccProduction) -> None:
        """command : NEXT ID name"""
        p[0] = NextIdCommand(type_name=p[3])

    def p_command_next_id_variant(self, p: yacc.YaccProduction) -> None:
        """command : NEXT ID name FOR name"""
        p[0] = NextIdCommand(type_name=p[3], variant=p[5])

    def p_command_delete(self, p: yacc.YaccProduction) -> None:
        """command : DELETE name record_id"""
        p[0] = DeleteCommand(type_name=p[2], record_id=p[3])

    def p_name(self, p: yacc.YaccProduction) -> None:
        """name : IDENTIFIER
                | ID"""
        p[0] = p[1]

    def p_record_id(self, p: yacc.YaccProduction) -> None:
        """record_id : IDENTIFIER
                     | STRING"""
        p[0] = p[1]

    def p_value_literal(self, p: yacc.YaccProduction) -> None:
        """value : INTEGER
                 | FLOAT
                 | STRING
                 | IDENTIFIER"""
        p[0] = p[1]

    def p_value_true(self, p: yacc.YaccProduction) -> None:
        """value : TRUE"""
        p[0] = True

    def p_value_false(self, p: yacc.YaccProduction) -> None:
        """value : FALSE"""
        p[0] = False

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (position {p.lexpos})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, start="statement", **kwargs)

    def parse(self, data: str) -> Command:
        """Parse a command string."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        return self.parser.parse(data, lexer=self.lexer.lexer)
