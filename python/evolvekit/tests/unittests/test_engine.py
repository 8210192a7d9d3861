import threading
import unittest
from collections import Counter

from numpy.random import Generator

from evolvekit.errors import IllegalStateError, PreconditionError
from evolvekit.evolution.bitstring import BitString
from evolvekit.evolution.candidates import candidates_of
from evolvekit.evolution.engine import (Epocher, EvolutionEngine,
                                        GenerationalEpocher)
from evolvekit.evolution.evaluation import FitnessCache, FunctionEvaluator
from evolvekit.evolution.factories import (BitStringFactory, CandidateFactory,
                                           StringFactory)
from evolvekit.evolution.observers import FunctionObserver
from evolvekit.evolution.operators.base import (EvolutionaryOperator,
                                                Pipeline)
from evolvekit.evolution.operators.crossover import (BitStringMater,
                                                     Crossover, StringMater)
from evolvekit.evolution.operators.mutation import (BitStringMutater,
                                                    Mutation, StringMutater)
from evolvekit.evolution.selection import (IdentitySelection,
                                           RouletteWheelSelection,
                                           TournamentSelection)
from evolvekit.evolution.termination import (GenerationCount, TargetFitness,
                                             UserAbort)

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ "
TARGET = "HELLO WORLD"


class ZeroFactory(CandidateFactory[int]):
    def new(self, rng: Generator) -> int:
        return 0


class ZeroOperator(EvolutionaryOperator[int]):
    def apply(self, selected: list[int], rng: Generator) -> list[int]:
        return [0 for _ in selected]


class IncrementOperator(EvolutionaryOperator[int]):
    def apply(self, selected: list[int], rng: Generator) -> list[int]:
        return [candidate + 1 for candidate in selected]


class RecordingEpocher(Epocher[int]):
    def __init__(self, epocher: Epocher[int]) -> None:
        self.epocher = epocher
        self.populations: list[list[int]] = []

    def epoch(self, population, natural, elite_count, rng):
        self.populations.append(candidates_of(population))
        return self.epocher.epoch(population, natural, elite_count, rng)


def value_evaluator() -> FunctionEvaluator[int]:
    return FunctionEvaluator(lambda candidate, _: float(candidate))


def bits_engine(rng: int) -> EvolutionEngine[BitString]:
    return EvolutionEngine.generational(
        BitStringFactory(20),
        Pipeline([
            Crossover(BitStringMater(), probability=0.7),
            Mutation(BitStringMutater(probability=0.2))
        ]),
        FunctionEvaluator(lambda bits, _: bits.ones_count()),
        RouletteWheelSelection(),
        rng=rng
    )


class TestEvolutionEngine(unittest.TestCase):
    def test_bit_counting(self):
        engine = bits_engine(0)
        population, satisfied = engine.evolve(
            100, elites=2,
            end_on=[TargetFitness(20, natural=True), GenerationCount(5000)])
        self.assertIsInstance(satisfied[0], TargetFitness)
        self.assertEqual(population[0].fitness, 20)
        self.assertEqual(population[0].candidate.to_number(), 0xFFFFF)

    def test_string_match(self):
        evaluator = FunctionEvaluator(
            lambda string, _: sum(a != b for a, b in zip(string, TARGET)),
            natural=False
        )
        engine = EvolutionEngine.generational(
            StringFactory(ALPHABET, len(TARGET)),
            Pipeline([
                Mutation(StringMutater(ALPHABET, 0.02)),
                Crossover(StringMater())
            ]),
            FitnessCache(evaluator),
            RouletteWheelSelection(),
            rng=7
        )
        best = engine.evolve_best(
            100, elites=5,
            end_on=[TargetFitness(0, natural=False), GenerationCount(5000)])
        self.assertEqual(best, TARGET)
        self.assertIsInstance(engine.satisfied_conditions[0], TargetFitness)

    def test_elitism(self):
        engine = EvolutionEngine.generational(
            ZeroFactory(), ZeroOperator(), value_evaluator(),
            RouletteWheelSelection(), rng=1)
        stats = []
        engine.add_observer(FunctionObserver(stats.append))
        population, _ = engine.evolve(
            10, elites=2, seeds=[7, 11, 13], end_on=GenerationCount(2))
        self.assertEqual(len(stats), 2)
        self.assertAlmostEqual(stats[-1].mean_fitness, 2.4)
        self.assertEqual(candidates_of(population)[:2], [13, 11])

    def test_elites_carried_over(self):
        epocher = RecordingEpocher(GenerationalEpocher(
            IncrementOperator(), TournamentSelection(0.9)))
        engine = EvolutionEngine(
            ZeroFactory(), value_evaluator(), epocher, rng=3)
        population, _ = engine.evolve(
            20, elites=4, seeds=range(20), end_on=GenerationCount(10))
        fitness = [member.fitness for member in population]
        self.assertEqual(fitness, sorted(fitness, reverse=True))
        generations = epocher.populations + [candidates_of(population)]
        self.assertEqual(len(generations), 10)
        for earlier, later in zip(generations, generations[1:]):
            elites = Counter(earlier[:4])
            self.assertEqual(elites - Counter(later), Counter())
            self.assertGreaterEqual(later[0], earlier[0])

    def test_generation_count(self):
        engine = bits_engine(5)
        generations = []
        engine.add_observer(
            FunctionObserver(lambda stats: generations.append(
                stats.generation)))
        engine.evolve(30, end_on=GenerationCount(7))
        self.assertEqual(generations, list(range(7)))

    def test_determinism(self):
        def run(seed):
            history = []
            engine = bits_engine(seed)
            engine.add_observer(FunctionObserver(
                lambda stats: history.append(
                    (stats.best_fitness, stats.mean_fitness))))
            population, _ = engine.evolve(
                50, elites=2, end_on=GenerationCount(15))
            return history, [str(member.candidate) for member in population]

        self.assertEqual(run(11), run(11))

    def test_concurrent_evaluation(self):
        sequential = bits_engine(13)
        concurrent = bits_engine(13)
        concurrent.concurrency = 4
        population_1, _ = sequential.evolve(40, end_on=GenerationCount(5))
        population_2, _ = concurrent.evolve(40, end_on=GenerationCount(5))
        self.assertEqual([str(member.candidate) for member in population_1],
                         [str(member.candidate) for member in population_2])

    def test_user_abort(self):
        abort = UserAbort()
        engine = EvolutionEngine.generational(
            ZeroFactory(), ZeroOperator(), value_evaluator(),
            IdentitySelection())

        def abort_later(stats):
            if stats.generation == 3:
                thread = threading.Thread(target=abort.abort)
                thread.start()
                thread.join()

        engine.add_observer(FunctionObserver(abort_later))
        _, satisfied = engine.evolve(
            5, end_on=[GenerationCount(100), abort])
        self.assertEqual(satisfied, [abort])
        self.assertTrue(abort.aborted)
        abort.reset()
        self.assertFalse(abort.aborted)

    def test_all_satisfied_conditions_reported(self):
        engine = EvolutionEngine.generational(
            ZeroFactory(), ZeroOperator(), value_evaluator(),
            IdentitySelection())
        conditions = [GenerationCount(1), TargetFitness(0, natural=True),
                      TargetFitness(1, natural=True)]
        _, satisfied = engine.evolve(5, end_on=conditions)
        self.assertEqual(satisfied, conditions[:2])

    def test_preconditions(self):
        engine = bits_engine(0)
        with self.assertRaises(PreconditionError):
            engine.evolve(0, end_on=GenerationCount(1))
        with self.assertRaises(PreconditionError):
            engine.evolve(10, elites=10, end_on=GenerationCount(1))
        with self.assertRaises(PreconditionError):
            engine.evolve(10, elites=-1, end_on=GenerationCount(1))
        with self.assertRaises(PreconditionError):
            engine.evolve(10)

    def test_satisfied_conditions_before_termination(self):
        engine = bits_engine(0)
        with self.assertRaises(IllegalStateError):
            engine.satisfied_conditions

    def test_evaluator_errors_propagate(self):
        def fail(candidate, population):
            raise KeyError(candidate)

        engine = EvolutionEngine.generational(
            ZeroFactory(), ZeroOperator(), FunctionEvaluator(fail),
            IdentitySelection())
        with self.assertRaises(KeyError):
            engine.evolve(5, end_on=GenerationCount(3))

    def test_remove_observer(self):
        engine = bits_engine(0)
        calls = []
        observer = FunctionObserver(calls.append)
        engine.add_observer(observer)
        engine.add_observer(observer)
        self.assertEqual(len(engine.observers), 1)
        engine.remove_observer(observer)
        engine.evolve(10, end_on=GenerationCount(2))
        self.assertEqual(calls, [])


if __name__ == "__main__":
    unittest.main()
