import unittest

from mongoschema.lattice import (
    BINARY,
    BOOL,
    DBREF,
    DOUBLE,
    INT32,
    INT64,
    NIL,
    OBJECT_ID,
    STRING,
    TIMESTAMP,
    Mixed,
    Sequence,
    Struct,
)
from mongoschema.naming import is_valid_field_name, make_field_name, split_words
from mongoschema.render import (
    RenderOptions,
    field_tag,
    referenced_imports,
    render,
    render_declaration,
    render_source,
)


class NamingTests(unittest.TestCase):
    def test_make_field_name_examples(self) -> None:
        cases = {
            "user_id": "UserID",
            "first-name": "FirstName",
            "_id": "ID",
            "userId": "UserID",
            "homepage_url": "HomepageURL",
            "api_key": "APIKey",
            "createdAt": "CreatedAt",
            "UPPER": "UPPER",
            "name": "Name",
            "2fa": "_fa",
            "$ref": "Ref",
            "stats 2024": "Stats2024",
        }
        for source, expected in cases.items():
            with self.subTest(source=source):
                self.assertEqual(make_field_name(source), expected)

    def test_split_words(self) -> None:
        self.assertEqual(split_words("someField_name-x"), ["some", "Field", "name", "x"])

    def test_invalid_field_names(self) -> None:
        self.assertFalse(is_valid_field_name(""))
        self.assertFalse(is_valid_field_name("wow!"))
        self.assertFalse(is_valid_field_name("a*b"))
        self.assertFalse(is_valid_field_name("$$"))
        self.assertTrue(is_valid_field_name("first-name"))


class RenderTests(unittest.TestCase):
    def test_primitive_names(self) -> None:
        cases = {
            BINARY: "bson.Binary",
            BOOL: "bool",
            DOUBLE: "float64",
            INT32: "int32",
            INT64: "int64",
            OBJECT_ID: "bson.ObjectId",
            STRING: "string",
            TIMESTAMP: "time.Time",
            DBREF: "mgo.DBRef",
        }
        for value, expected in cases.items():
            with self.subTest(expected=expected):
                self.assertEqual(render(value), expected)

    def test_nil_and_sequences(self) -> None:
        self.assertEqual(render(NIL), "nil")
        self.assertEqual(render(Sequence(NIL)), "[]nil")
        self.assertEqual(render(Sequence(Sequence(STRING))), "[][]string")

    def test_struct_fields_sorted_and_tagged(self) -> None:
        value = Struct({"b": STRING, "a": INT64})
        expected = "\n".join(
            [
                "struct {",
                '\tA int64 `bson:"a,omitempty" json:"a,omitempty"`',
                '\tB string `bson:"b,omitempty" json:"b,omitempty"`',
                "}",
            ]
        )
        self.assertEqual(render(value), expected)

    def test_nested_struct_is_indented(self) -> None:
        value = Struct({"addr": Struct({"zip": INT64})})
        expected = "\n".join(
            [
                "struct {",
                "\tAddr struct {",
                '\t\tZip int64 `bson:"zip,omitempty" json:"zip,omitempty"`',
                '\t} `bson:"addr,omitempty" json:"addr,omitempty"`',
                "}",
            ]
        )
        self.assertEqual(render(value), expected)

    def test_empty_struct(self) -> None:
        self.assertEqual(render(Struct()), "struct {\n}")

    def test_ignored_fields_are_dropped(self) -> None:
        options = RenderOptions(ignored_fields=frozenset({"_id"}))
        rendered = render(Struct({"_id": OBJECT_ID, "name": STRING}), options)
        self.assertNotIn("ID", rendered)
        self.assertIn("Name string", rendered)

    def test_ignored_fields_apply_to_nested_structs(self) -> None:
        options = RenderOptions(ignored_fields=frozenset({"secret"}))
        rendered = render(Struct({"inner": Struct({"secret": STRING, "x": INT64})}), options)
        self.assertNotIn("Secret", rendered)
        self.assertIn("X int64", rendered)

    def test_invalid_field_names_are_skipped(self) -> None:
        value = Struct({"bad!": STRING, "a*": INT64, "ok": BOOL})
        with self.assertLogs("mongoschema.render", level="WARNING"):
            quiet = render(value)
        self.assertNotIn("bad", quiet)
        self.assertNotIn("//", quiet)
        self.assertIn("Ok bool", quiet)

        with self.assertLogs("mongoschema.render", level="WARNING"):
            verbose = render(value, RenderOptions(comments=True))
        self.assertIn("// skipping invalid field name bad!", verbose)
        self.assertIn("// skipping invalid field name a*", verbose)

    def test_mixed_rendering(self) -> None:
        value = Mixed((DOUBLE, STRING))
        self.assertEqual(render(value), "interface{}")
        self.assertEqual(
            render(value, RenderOptions(comments=True)),
            "interface{} /* float64, string */",
        )
        self.assertEqual(render(Sequence(value)), "[]interface{}")

    def test_mixed_comment_does_not_nest(self) -> None:
        value = Mixed((STRING, Struct({"x": Mixed((INT64, STRING))})))
        rendered = render(value, RenderOptions(comments=True))
        self.assertEqual(rendered.count("/*"), 1)
        self.assertEqual(rendered.count("*/"), 1)
        self.assertTrue(rendered.startswith("interface{} /* string, struct {"))
        self.assertIn("X interface{} `bson", rendered)

    def test_field_tag(self) -> None:
        self.assertEqual(field_tag("first-name"), '`bson:"first-name,omitempty" json:"first-name,omitempty"`')


class DeclarationTests(unittest.TestCase):
    def test_render_declaration(self) -> None:
        declaration = render_declaration("User", Struct({"name": STRING}))
        self.assertEqual(declaration.name, "User")
        self.assertTrue(declaration.text.startswith("User struct {"))
        self.assertEqual(str(declaration), declaration.text)
        self.assertEqual(declaration.imports, frozenset())

    def test_referenced_imports(self) -> None:
        value = Struct(
            {
                "_id": OBJECT_ID,
                "when": Sequence(TIMESTAMP),
                "ref": DBREF,
                "any": Mixed((BINARY, STRING)),
                "bad!": BINARY,
            }
        )
        self.assertEqual(
            referenced_imports(value),
            {"gopkg.in/mgo.v2/bson", "time", "gopkg.in/mgo.v2"},
        )
        options = RenderOptions(ignored_fields=frozenset({"_id", "ref"}))
        self.assertEqual(referenced_imports(value, options), {"time"})

    def test_render_source(self) -> None:
        declarations = [
            render_declaration("User", Struct({"_id": OBJECT_ID, "name": STRING})),
            render_declaration("Event", Struct({"at": TIMESTAMP})),
        ]
        source = render_source(declarations, "models")
        self.assertTrue(source.startswith("// Code generated by mongoschema. DO NOT EDIT.\n"))
        self.assertIn("package models\n", source)
        self.assertIn('import (\n\t"gopkg.in/mgo.v2/bson"\n\t"time"\n)\n', source)
        self.assertIn("\ntype User struct {\n", source)
        self.assertIn("\ntype Event struct {\n", source)
        self.assertLess(source.index("type User"), source.index("type Event"))
        self.assertTrue(source.endswith("}\n"))

    def test_render_source_without_imports(self) -> None:
        source = render_source([render_declaration("Plain", Struct({"n": INT64}))], "models")
        self.assertNotIn("import", source)


if __name__ == "__main__":
    unittest.main()
