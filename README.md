# dolly

dolly reads a small subset of the Puppet manifest language and checks that
every resource reference points at a declared resource. It then turns the
manifest into an acyclic execution plan. The plan is a directed graph of
resources whose edges are ordering (`->`) and notification (`~>`) relations.

## What it understands

- **Resource declarations.** Each has a lower-case type, a quoted title and
  optional quoted attributes, separated by commas:

  ```puppet
  file { "/tmp/${var}/test":
      mode => "0644",
  }
  service { "nginx": }
  foo::bar { "test": }
  ```

  Double-quoted strings may hold `${name}` interpolations. These are kept as
  variables and are not expanded. Single-quoted strings are taken literally.
  Lines starting with `#` are comments.

- **Resource references.** A reference has an upper-case first letter. It can
  stand alone, as in `File["/tmp/one"]`, or sit in a list, as in
  `[File["/tmp/one"], Foo::Bar["test"]]`.

- **Relation chains.** These use `->`, `<-`, `~>` and `<~`:

  ```puppet
  File["/tmp/one"] -> File["/tmp/two"] ~> Service["nginx"]
  Service["ssh"] <~ File["/tmp/one"]
  ```

  A chain of *n* arrows becomes *n* relations. `<-` and `<~` are stored as
  reversed `->` and `~>` edges. A relation between two lists adds one edge for
  every pair.

The known resource types are `File`, `Exec`, `Service` and `Foo::Bar`.

## Installation

```sh
pip install .
```

## Command line

```sh
dolly path/to/manifest.pp
```

The manifest is read from standard input when the argument is `-` or is left
out.

The command prints two things:

1. The plan as a Graphviz DOT graph. Nodes are labelled with resource ids and
   edges with `Provide` or `Notify`.
2. A `# Execution plan debug:` listing. It gives the resources in topological
   order, each followed by its outgoing relations.

On an error the command prints `Error: ...` to standard error and exits with
status 1.

## Library use

```python
from dolly.parser import Manifest
from dolly.plan import parse_puppet_manifest

manifest = Manifest.from_str('''
    file { "/tmp/one": }
    service { "nginx": }
    File["/tmp/one"] -> Service["nginx"]
''')

print(len(manifest))                        # 3 expressions
plan = parse_puppet_manifest(manifest)
print(plan.node_count(), plan.edge_count()) # 2 1

for index, resource in plan.sorted_weights().items():
    print(resource.id())                    # File[/tmp/one], then Service[nginx]

print(plan.dot())
```

### `dolly.parser`

- `Manifest.from_str()`, or `parse_manifest()`, parses the text and returns a
  `Manifest`.
- `Manifest.resources()` yields the `ResourceExpr` items and
  `Manifest.relations()` yields the `RelationExpr` items.
- Iterating a manifest gives all expressions in source order. `str()` of a
  manifest renders it back as text.

### `dolly.resources`

- `File`, `Exec`, `Service` and `FooBar` are the resource types. Each has
  `rtype`, `title` and `id()`.
- `resource_from_expr()` builds the matching resource from a `ResourceExpr`.

### `dolly.plan`

- `Plan` has the following methods:
  - `add_node()`
  - `try_add_edge()`, which refuses any edge that would close a cycle
  - `node()` and `edges()`
  - `sorted()` and `sorted_weights()`
  - `dot()`
- `parse_puppet_manifest()` builds a `Plan` from a `Manifest`.

### `dolly.cli`

- `render_plan()` returns the text that the command prints.

## Errors

| Error | Raised for |
| --- | --- |
| `dolly.parser.PuppetError` | Syntax errors, with line and column. Also a reference to an undeclared resource. |
| `ValueError` | An unknown resource type, raised by `resource_from_expr()`. |
| `dolly.plan.PlanError` | A relation that would create a cycle, or an unknown node index. |

Both `PuppetError` and `PlanError` are subclasses of `ValueError`.

## What it does not do

dolly only parses and orders resources; it does not change the system.
`Resource.ensure()` prints a line such as `Ensure present: /tmp/one` and does
nothing else.

Attribute values are stored but not interpreted.

The language is limited to the subset above. Classes, variables assignments,
conditionals and functions are not supported.

## Running the tests

```sh
pip install ".[test]"
pytest
```