from __future__ import annotations

from integral_rush.game.problems.constants import (
    DIFFICULTY_ADVANCED,
    DIFFICULTY_BASIC,
    DIFFICULTY_INTERMEDIATE,
)
from integral_rush.game.problems.types import IntegralProblem

_BASIC_POOL: tuple[IntegralProblem, ...] = (
    IntegralProblem(
        problem_id="basic_1",
        statement=r"\int x \,dx",
        solution=r"\frac{x^2}{2} + C",
        difficulty=DIFFICULTY_BASIC,
        hint="Power rule: x^n integrates to x^(n+1)/(n+1).",
        alternatives=(r"\frac{1}{2}x^2 + C", "0.5x^2 + C"),
    ),
    IntegralProblem(
        problem_id="basic_2",
        statement=r"\int x^2 \,dx",
        solution=r"\frac{x^3}{3} + C",
        difficulty=DIFFICULTY_BASIC,
        hint="Power rule with n = 2.",
        alternatives=(r"\frac{1}{3}x^3 + C",),
    ),
    IntegralProblem(
        problem_id="basic_3",
        statement=r"\int \frac{1}{x} \,dx",
        solution=r"\ln|x| + C",
        difficulty=DIFFICULTY_BASIC,
        hint="The antiderivative of 1/x is a logarithm.",
        alternatives=(r"\ln(x) + C", r"\log(x) + C"),
    ),
    IntegralProblem(
        problem_id="basic_4",
        statement=r"\int e^x \,dx",
        solution="e^x + C",
        difficulty=DIFFICULTY_BASIC,
        hint="The exponential is its own derivative.",
    ),
    IntegralProblem(
        problem_id="basic_5",
        statement=r"\int \sin(x) \,dx",
        solution=r"-\cos(x) + C",
        difficulty=DIFFICULTY_BASIC,
        hint="The derivative of cos(x) is -sin(x).",
    ),
    IntegralProblem(
        problem_id="basic_6",
        statement=r"\int \cos(x) \,dx",
        solution=r"\sin(x) + C",
        difficulty=DIFFICULTY_BASIC,
        hint="The derivative of sin(x) is cos(x).",
    ),
)

_INTERMEDIATE_POOL: tuple[IntegralProblem, ...] = (
    IntegralProblem(
        problem_id="inter_1",
        statement=r"\int x\ln(x) \,dx",
        solution=r"\frac{x^2\ln(x)}{2} - \frac{x^2}{4} + C",
        difficulty=DIFFICULTY_INTERMEDIATE,
        hint="Integration by parts with u = ln(x).",
        alternatives=(r"\frac{x^2}{2}\ln(x) - \frac{x^2}{4} + C",),
    ),
    IntegralProblem(
        problem_id="inter_2",
        statement=r"\int xe^x \,dx",
        solution="xe^x - e^x + C",
        difficulty=DIFFICULTY_INTERMEDIATE,
        hint="Integration by parts with u = x.",
        alternatives=("e^x(x-1) + C",),
    ),
    IntegralProblem(
        problem_id="inter_3",
        statement=r"\int x\sin(x) \,dx",
        solution=r"-x\cos(x) + \sin(x) + C",
        difficulty=DIFFICULTY_INTERMEDIATE,
        hint="Integration by parts with u = x.",
        alternatives=(r"\sin(x) - x\cos(x) + C",),
    ),
    IntegralProblem(
        problem_id="inter_5",
        statement=r"\int \tan(x) \,dx",
        solution=r"-\ln|\cos(x)| + C",
        difficulty=DIFFICULTY_INTERMEDIATE,
        hint="Rewrite as sin(x)/cos(x) and substitute.",
        alternatives=(r"\ln|\sec(x)| + C",),
    ),
    IntegralProblem(
        problem_id="inter_7",
        statement=r"\int \frac{1}{x^2+1} \,dx",
        solution=r"\arctan(x) + C",
        difficulty=DIFFICULTY_INTERMEDIATE,
        hint="A standard arctangent integral.",
        alternatives=(r"\tan^{-1}(x) + C",),
    ),
)

_ADVANCED_POOL: tuple[IntegralProblem, ...] = (
    IntegralProblem(
        problem_id="adv_1",
        statement=r"\int x^2e^x \,dx",
        solution="x^2e^x - 2xe^x + 2e^x + C",
        difficulty=DIFFICULTY_ADVANCED,
        hint="Integration by parts twice.",
        alternatives=("e^x(x^2 - 2x + 2) + C",),
    ),
    IntegralProblem(
        problem_id="adv_2",
        statement=r"\int \sin^2(x) \,dx",
        solution=r"\frac{x}{2} - \frac{\sin(2x)}{4} + C",
        difficulty=DIFFICULTY_ADVANCED,
        hint="Use sin^2(x) = (1 - cos(2x))/2.",
        alternatives=(r"\frac{x - \sin(x)\cos(x)}{2} + C",),
    ),
    IntegralProblem(
        problem_id="adv_5",
        statement=r"\int \frac{1}{\sqrt{1-x^2}} \,dx",
        solution=r"\arcsin(x) + C",
        difficulty=DIFFICULTY_ADVANCED,
        hint="A standard arcsine integral.",
        alternatives=(r"\sin^{-1}(x) + C",),
    ),
    IntegralProblem(
        problem_id="adv_6",
        statement=r"\int \frac{x^3}{x^2+1} \,dx",
        solution=r"\frac{x^2}{2} - \frac{1}{2}\ln(x^2+1) + C",
        difficulty=DIFFICULTY_ADVANCED,
        hint="Polynomial long division first.",
        alternatives=(r"\frac{x^2 - \ln(x^2+1)}{2} + C",),
    ),
)

STATIC_PROBLEM_POOLS: dict[str, tuple[IntegralProblem, ...]] = {
    DIFFICULTY_BASIC: _BASIC_POOL,
    DIFFICULTY_INTERMEDIATE: _INTERMEDIATE_POOL,
    DIFFICULTY_ADVANCED: _ADVANCED_POOL,
}
