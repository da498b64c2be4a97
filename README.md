# antigen

Building blocks for recording failure-classes in Rust code. The package
reads Rust source and the three attributes that carry the record:

- `#[antigen(name = "...", fingerprint = "...", ...)]` declares a named
  failure-class.
- `#[presents(SomeAntigen)]` marks an item as vulnerable to that class.
- `#[immune(SomeAntigen, witness = some_test)]` claims that an item is
  protected and names the witness that shows it.

It has no dependencies outside the standard library.

## Installation

```
pip install antigen
```

## Modules

### `antigen.lexer`

`tokenize(source)` splits Rust source into a list of token trees, dropping
comments. A tree is either a `Token` (with `kind`, a `TokenKind`, its `text`,
`line`, a `joint` flag for punctuation directly followed by more punctuation,
and the unescaped `value` of string, byte and character literals) or a
`Group` holding the trees inside `( )`, `[ ]` or `{ }`. Malformed input
(unclosed delimiters, unterminated literals, bad escapes) raises `LexError`,
which carries the `line`.

`render(trees)` writes trees back out in a canonical form: one space between
trees, none after joint punctuation. `render(tokenize("my_crate::Foo"))` gives
`"my_crate :: Foo"`.

### `antigen.attrs`

Parsers for attribute argument lists. Each takes either a string or a list of
token trees, and raises `AttributeArgsError` on input that does not follow the
grammar.

- `parse_antigen_args(source)` returns `AntigenArgs` with `name`,
  `fingerprint`, `family` and `summary`. String values are unescaped. Fields
  may come in any order; `references = [...]` and unknown fields are consumed
  and ignored; missing fields stay empty (`""` for `name`, `None` otherwise).
- `parse_immune_args(source)` returns `ImmuneArgs`: `antigen_type` is the last
  segment of the leading path, and `witness` is the rendered witness
  expression (`""` if there is none). Other fields are ignored.
- `parse_path_last_segment(source)` requires exactly one path and returns its
  last segment.

```python
from antigen.attrs import parse_antigen_args, parse_immune_args

args = parse_antigen_args('name = "panicking-in-drop", fingerprint = "impl Drop"')
assert args.name == "panicking-in-drop"

immune = parse_immune_args("my_crate::PanickingInDrop, witness = my_test_fn()")
assert immune.antigen_type == "PanickingInDrop"
assert immune.witness == "my_test_fn ()"
```

### `antigen.parser`

`parse_items(source)` returns the top-level `Item`s of a Rust file. Each item
has a `kind` (`ItemKind`), a `name` (`None` for impls, `use` and foreign
blocks), its `line`, its outer `attrs`, and for traits, modules and impl
blocks the nested items in `children`. Impl items also carry `trait_path`
(`None` for inherent impls) and `self_type`, both rendered as above.
Ill-formed source raises `RustParseError`, which carries the `line`.

An `Attribute` has its `path` as a tuple of segments, its `line`, and, in the
list form `#[path(...)]`, the inner trees in `args`. `is_named(name)` is true
when the last path segment equals `name`, so `#[immune(...)]` and
`#[antigen::immune(...)]` both match.

```python
from antigen.attrs import parse_path_last_segment
from antigen.parser import parse_items

source = """
#[presents(PanickingInDrop)]
impl Drop for SomeType {
    fn drop(&mut self) {}
}
"""
for item in parse_items(source):
    for attr in item.attrs:
        if attr.is_named("presents"):
            print(item.self_type, parse_path_last_segment(attr.args))
```

## What this package does not do

The package parses single source strings. It does not walk a directory of
source files, does not pair `presents` with `immune` declarations or report
unaddressed presentations, does not build a scan report or JSON output, and
has no command-line tool. Witness names are read as written; nothing checks
that they refer to a real test.