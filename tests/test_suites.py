"""Suite grouping tests."""

from stge.constants import MOCK_SYMBOL
from stge.emission import build_suites, resolve_namespace, suite_class_name
from stge.synthesis import SharedSetup, TestCase, TestKind, TestSynthesizer


def case(name, function="doWork", package="", symbols=(), setup=None):
    return TestCase(
        name=name,
        kind=TestKind.BASIC,
        target_declaration=function,
        target_function=function,
        file="/src/Demo.kt",
        package=package,
        required_symbols=symbols,
        setup=setup,
    )


def test_suite_class_names():
    """Suites are named after the class or the top-level function."""
    shop = SharedSetup("Outer.Shop", "com.demo.Outer.Shop")

    assert suite_class_name(case("t")) == "DoWorkTest"
    assert suite_class_name(case("t", setup=shop)) == "OuterShopTest"


def test_namespace_prefers_own_package():
    """The target's package wins over anything else."""
    assert resolve_namespace(case("t", package="com.demo", symbols=("org.x.Y",))) == "com.demo"


def test_namespace_falls_back_to_symbols_then_default():
    """Without a package the first non-mock symbol decides, else the default."""
    with_symbol = case("t", symbols=(MOCK_SYMBOL, "com.data.Repository"))

    assert resolve_namespace(with_symbol) == "com.data"
    assert resolve_namespace(case("t", symbols=(MOCK_SYMBOL,)), "gen") == "gen"


def test_groups_in_first_appearance_order(do_work_model, shop_model):
    """One suite per target, ordered by first test case."""
    test_cases = (
        TestSynthesizer().synthesize(shop_model).test_cases
        + TestSynthesizer().synthesize(do_work_model).test_cases
    )

    suites = build_suites(test_cases)

    assert [(s.package, s.class_name) for s in suites] == [
        ("com.demo", "ShopTest"),
        ("com.demo", "DoWorkTest"),
    ]
    assert [len(s.test_cases) for s in suites] == [3, 5]
    assert suites[0].setup is not None
    assert suites[1].setup is None


def test_self_namespace_imports_are_dropped(shop_model):
    """Symbols in the suite's own package are not imported."""
    suite = build_suites(TestSynthesizer().synthesize(shop_model).test_cases)[0]

    assert suite.imports == ["com.data.Repository", MOCK_SYMBOL]


def test_duplicate_names_are_numbered():
    """Repeated test names in one suite get 2, 3, ... suffixes."""
    suites = build_suites([case("testDoWork"), case("testDoWork"), case("testDoWork")])

    assert [t.name for t in suites[0].test_cases] == ["testDoWork", "testDoWork2", "testDoWork3"]


def test_default_package_for_unnamespaced_cases():
    """Cases with no namespace land in the default package."""
    suites = build_suites([case("testMain", function="main")], default_package="generated")

    assert suites[0].package == "generated"
    assert suites[0].imports == []
