import pytest

from dolly.parser import (
    Literal,
    Manifest,
    PuppetString,
    RelationExpr,
    RelationOp,
    ResourceExpr,
    ResourceRef,
)
from dolly.plan import Plan, PlanError, parse_puppet_manifest
from dolly.resources import File, Relation, Service


def _plan(text):
    return parse_puppet_manifest(Manifest.from_str(text))


def _position(plan):
    return {plan.node(i).id(): pos for pos, i in enumerate(plan.sorted())}


def test_empty_manifest():
    manifest = Manifest.from_str("")
    assert len(manifest) == 0
    plan = parse_puppet_manifest(manifest)
    assert plan.node_count() == 0
    assert plan.edge_count() == 0


def test_single_file_resource():
    plan = _plan('\n    file { "/tmp/one":\n    }\n')
    assert plan.node_count() == 1
    assert plan.edge_count() == 0
    weights = plan.sorted_weights()
    assert len(weights) == 1
    node = next(iter(weights.values()))
    assert node.rtype == "File"
    assert node.title == "/tmp/one"


def test_single_relation():
    plan = _plan(
        """
        file { "/tmp/one": }
        service { "nginx": }
        File["/tmp/one"] -> Service["nginx"]
        """
    )
    assert plan.node_count() == 2
    assert plan.edge_count() == 1
    titles = [n.title for n in plan.sorted_weights().values()]
    assert titles == ["/tmp/one", "nginx"]


def test_multiple_resources_with_variables():
    plan = _plan(
        """
        file { "/tmp/${var}/test":
            mode => "0644",
        }
        exec { "/root/${script}/run.sh": }
        service { "nginx": }
        """
    )
    assert plan.node_count() == 3
    assert plan.edge_count() == 0


def test_chained_relations():
    plan = _plan(
        """
        file { "/tmp/one": }
        file { "/tmp/two": }
        service { "nginx": }
        File["/tmp/one"] -> File["/tmp/two"] ~> Service["nginx"]
        """
    )
    assert plan.node_count() == 3
    assert plan.edge_count() == 2
    ids = [n.id() for n in plan.sorted_weights().values()]
    assert set(ids) == {"File[/tmp/one]", "File[/tmp/two]", "Service[nginx]"}
    pos = _position(plan)
    assert pos["File[/tmp/one]"] < pos["File[/tmp/two]"] < pos["Service[nginx]"]


def test_empty_quoted_string():
    plan = _plan('file { "": }')
    assert plan.node_count() == 1
    assert plan.edge_count() == 0
    assert plan.node(0).id() == "File[]"


def test_whitespace_variations():
    text = (
        'file  { "/tmp/one" : } file{ "/tmp/two" : } foo::bar  { "/tmp/two" : } '
        'service { "nginx" : } [File [ "/tmp/one" ], Foo::Bar [ "/tmp/two" ]] '
        '-> Service  [ "nginx" ]'
    )
    manifest = Manifest.from_str(text)
    assert len(manifest) == 5
    plan = parse_puppet_manifest(manifest)
    assert plan.node_count() == 4
    assert plan.edge_count() == 2


def test_reverse_relations():
    plan = _plan(
        """
        file { "/tmp/one": }
        service { "ssh": }
        Service["ssh"] <~ File["/tmp/one"]
        """
    )
    assert plan.node_count() == 2
    assert plan.edge_count() == 1
    assert len(plan.sorted_weights()) == 2
    pos = _position(plan)
    assert pos["File[/tmp/one]"] < pos["Service[ssh]"]
    file_index = next(i for i in plan.sorted() if plan.node(i).rtype == "File")
    [(target, relation)] = plan.edges(file_index)
    assert plan.node(target).id() == "Service[ssh]"
    assert relation is Relation.NOTIFY


def test_require_reverses_edge():
    plan = _plan(
        """
        file { "/a": }
        file { "/b": }
        File["/a"] <- File["/b"]
        """
    )
    pos = _position(plan)
    assert pos["File[/b]"] < pos["File[/a]"]


def test_uc_first_and_namespaced_refs():
    plan = _plan(
        """
        service { "nginx": }
        Service["nginx"] -> File["/tmp/one"]
        file { "/tmp/one": }
        foo::bar { "test": }
        Foo::Bar["test"] -> File["/tmp/one"]
        """
    )
    assert plan.node_count() == 3
    assert plan.edge_count() == 2


def test_single_ref_ref_list():
    manifest = Manifest.from_str(
        """
        service { "nginx": }
        file { "/tmp/one": }
        [Service["nginx"]] -> File["/tmp/one"]
        """
    )
    assert len(manifest) == 3
    assert parse_puppet_manifest(manifest).node_count() == 2


def test_cycle_is_rejected():
    with pytest.raises(PlanError, match="Error creating edge in acyclic graph"):
        _plan(
            """
            file { "/a": }
            file { "/b": }
            File["/a"] -> File["/b"] -> File["/a"]
            """
        )


def test_self_loop_is_rejected():
    with pytest.raises(PlanError):
        _plan('file { "/a": }\nFile["/a"] ~> File["/a"]')


def test_unknown_resource_in_hand_built_manifest():
    title = PuppetString((Literal("/a"),))
    missing = ResourceRef("Service", PuppetString((Literal("ghost"),)))
    manifest = Manifest(
        [
            ResourceExpr("File", title),
            RelationExpr((ResourceRef("File", title),), (missing,), RelationOp.PROVIDE),
        ]
    )
    with pytest.raises(PlanError, match=r"Unknown resource: Service\[ghost\]"):
        parse_puppet_manifest(manifest)


def test_unknown_rtype():
    with pytest.raises(ValueError, match="unknown rtype: Package"):
        _plan('package { "vim": }')


def test_plan_direct_api_and_dot():
    plan = Plan()
    a = plan.add_node(File("/tmp/one"))
    b = plan.add_node(Service("nginx"))
    plan.try_add_edge(a, b, Relation.PROVIDE)
    with pytest.raises(PlanError):
        plan.try_add_edge(b, a, Relation.NOTIFY)
    assert plan.edge_count() == 1
    assert plan.sorted() == [a, b]
    dot = plan.dot()
    assert dot.startswith("digraph {\n")
    assert f'    {a} [ label = "File[/tmp/one]"]' in dot
    assert f'    {a} -> {b} [ label = "Provide"]' in dot
    assert dot.endswith("}\n")


def test_edges_newest_first():
    plan = Plan()
    a = plan.add_node(File("/a"))
    b = plan.add_node(File("/b"))
    c = plan.add_node(File("/c"))
    plan.try_add_edge(a, b, Relation.PROVIDE)
    plan.try_add_edge(a, c, Relation.NOTIFY)
    assert plan.edges(a) == [(c, Relation.NOTIFY), (b, Relation.PROVIDE)]


def test_bad_index():
    plan = Plan()
    with pytest.raises(PlanError):
        plan.node(3)