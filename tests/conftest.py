"""Shared pytest fixtures for Program Models."""

import pytest
from builders import INT_A, INT_B, function, if_branch

from stge.model.models import (
    ClassDecl,
    FunctionCall,
    FunctionDecl,
    Parameter,
    ProgramModel,
    SourceFile,
    class_scope,
)


@pytest.fixture
def do_work() -> FunctionDecl:
    """doWork(a, b): if (a > 19) a + b else if (b == 0) 0 else a - b."""
    return function("doWork", (INT_A, INT_B), package="com.demo")


@pytest.fixture
def do_work_model(do_work: FunctionDecl) -> ProgramModel:
    """Program Model holding only doWork and its two if branches."""
    return ProgramModel(
        files=[SourceFile(do_work.file, "com.demo")],
        functions=[do_work],
        branches=[
            if_branch(0, "a > 19", do_work, line=2, body="return a + b"),
            if_branch(1, "b == 0", do_work, line=3, body="return 0"),
        ],
    )


@pytest.fixture
def shop_model() -> ProgramModel:
    """A class Shop(val name: String) with a public and a private method."""
    shop = ClassDecl(
        name="Shop",
        qualified_name="com.demo.Shop",
        file="/src/Shop.kt",
        line=3,
        end_line=20,
        scope_id=class_scope("com.demo.Shop"),
        package="com.demo",
        constructor_parameters=(Parameter("name", "String"),),
    )
    checkout = function(
        "checkout",
        (Parameter("items", "List<String>"), Parameter("repository", "Repository")),
        return_type="String",
        containing_class="com.demo.Shop",
        package="com.demo",
        file="/src/Shop.kt",
    )
    helper = function(
        "helper",
        (),
        containing_class="com.demo.Shop",
        package="com.demo",
        file="/src/Shop.kt",
        is_private=True,
    )
    return ProgramModel(
        files=[SourceFile("/src/Shop.kt", "com.demo", ("com.data.Repository",))],
        classes=[shop],
        functions=[checkout, helper],
        branches=[if_branch(0, "items.isEmpty()", checkout, line=5)],
    )


@pytest.fixture
def sum_model() -> ProgramModel:
    """sum(vararg numbers: Int) called elsewhere as sum(1, 2, 3, 4, 5)."""
    total = function("sum", (Parameter("numbers", "Int", is_variadic=True),))
    main = function("main", (), return_type="Unit")
    return ProgramModel(
        files=[SourceFile("/src/Demo.kt")],
        functions=[total, main],
        calls=[
            FunctionCall(
                name="sum",
                file="/src/Demo.kt",
                line=12,
                scope_id=main.scope_id,
                caller="main",
                caller_qualified_name="main",
                arguments=("1", "2", "3", "4", "5"),
            )
        ],
    )
