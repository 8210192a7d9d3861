import threading
import unittest
from collections import Counter

from numpy.random import default_rng

from evolvekit.errors import IllegalStateError, PreconditionError
from evolvekit.evolution.candidates import EvaluatedCandidate, candidates_of
from evolvekit.evolution.evaluation import FunctionEvaluator
from evolvekit.evolution.factories import BitStringFactory
from evolvekit.evolution.islands import (IslandEvolution,
                                         IslandEvolutionObserver,
                                         RandomMigration, RingMigration)
from evolvekit.evolution.operators.base import EvolutionaryOperator, Pipeline
from evolvekit.evolution.operators.crossover import (BitStringMater,
                                                     Crossover)
from evolvekit.evolution.operators.mutation import (BitStringMutater,
                                                    Mutation)
from evolvekit.evolution.selection import TournamentSelection
from evolvekit.evolution.termination import GenerationCount, TargetFitness


def islands_of(*names):
    return [[EvaluatedCandidate(f"{name}{index}", float(index))
             for index in range(3)]
            for name in names]


def island_evolution(rng=0, migration=None):
    return IslandEvolution.create(
        3,
        BitStringFactory(16),
        Pipeline([
            Crossover(BitStringMater(), probability=0.7),
            Mutation(BitStringMutater(probability=0.3))
        ]),
        FunctionEvaluator(lambda bits, _: bits.ones_count()),
        TournamentSelection(0.8),
        migration if migration is not None else RingMigration(),
        rng=rng
    )


class CountingOperator(EvolutionaryOperator):
    def __init__(self):
        self.lock = threading.Lock()
        self.calls = 0

    def apply(self, selected, rng):
        with self.lock:
            self.calls += 1
        return list(selected)


class RecordingObserver(IslandEvolutionObserver):
    def __init__(self):
        self.lock = threading.Lock()
        self.epochs = []
        self.island_updates = []

    def population_update(self, stats):
        self.epochs.append(stats)

    def island_population_update(self, island_index, stats):
        with self.lock:
            self.island_updates.append((island_index, stats.generation))


class TestRingMigration(unittest.TestCase):
    def test_whole_populations_move_to_next_island(self):
        islands = islands_of("A", "B", "C")
        RingMigration().migrate(islands, 3, default_rng(0))
        self.assertEqual(sorted(candidates_of(islands[0])),
                         ["C0", "C1", "C2"])
        self.assertEqual(sorted(candidates_of(islands[1])),
                         ["A0", "A1", "A2"])
        self.assertEqual(sorted(candidates_of(islands[2])),
                         ["B0", "B1", "B2"])

    def test_partial_migration(self):
        islands = islands_of("A", "B", "C")
        RingMigration().migrate(islands, 1, default_rng(1))
        for index, previous in enumerate("CAB"):
            names = candidates_of(islands[index])
            self.assertEqual(len(names), 3)
            self.assertEqual(
                sum(name.startswith(previous) for name in names), 1)

    def test_no_migrants(self):
        islands = islands_of("A", "B")
        RingMigration().migrate(islands, 0, default_rng(0))
        self.assertEqual(candidates_of(islands[0]), ["A0", "A1", "A2"])
        self.assertEqual(candidates_of(islands[1]), ["B0", "B1", "B2"])

    def test_too_many_migrants(self):
        with self.assertRaises(PreconditionError):
            RingMigration().migrate(islands_of("A", "B"), 4, default_rng(0))
        with self.assertRaises(PreconditionError):
            RingMigration().migrate(islands_of("A", "B"), -1, default_rng(0))


class TestRandomMigration(unittest.TestCase):
    def test_individuals_conserved(self):
        islands = islands_of("A", "B", "C", "D")
        before = Counter(name for island in islands
                         for name in candidates_of(island))
        RandomMigration().migrate(islands, 2, default_rng(2))
        after = Counter(name for island in islands
                        for name in candidates_of(island))
        self.assertEqual(before, after)
        self.assertTrue(all(len(island) == 3 for island in islands))

    def test_too_many_migrants(self):
        with self.assertRaises(PreconditionError):
            RandomMigration().migrate(islands_of("A"), 5, default_rng(0))


class TestIslandEvolution(unittest.TestCase):
    def test_evolution(self):
        evolution = island_evolution()
        observer = RecordingObserver()
        evolution.add_observer(observer)
        population, satisfied = evolution.evolve(
            10, elites=1, epoch_length=2, migrant_count=2,
            end_on=GenerationCount(3))
        self.assertEqual(len(population), 30)
        fitness = [member.fitness for member in population]
        self.assertEqual(fitness, sorted(fitness, reverse=True))
        self.assertIsInstance(satisfied[0], GenerationCount)
        self.assertEqual(evolution.satisfied_conditions, satisfied)
        self.assertEqual([stats.generation for stats in observer.epochs],
                         [0, 1, 2])
        self.assertEqual(len(observer.island_updates), 3 * 2 * 3)
        self.assertEqual({index for index, _ in observer.island_updates},
                         {0, 1, 2})

    def test_target_fitness(self):
        evolution = island_evolution(rng=4, migration=RandomMigration())
        best = evolution.evolve_best(
            20, elites=2, epoch_length=5, migrant_count=3,
            end_on=[TargetFitness(16, natural=True), GenerationCount(200)])
        self.assertEqual(best.ones_count(), 16)

    def test_islands_vary_within_epochs(self):
        operator = CountingOperator()
        evolution = IslandEvolution.create(
            3,
            BitStringFactory(8),
            operator,
            FunctionEvaluator(lambda bits, _: bits.ones_count()),
            TournamentSelection(0.8),
            RingMigration(),
            rng=0
        )
        evolution.evolve(10, epoch_length=3, migrant_count=2,
                         end_on=GenerationCount(2))
        self.assertEqual(operator.calls, 3 * 2 * 2)
        operator.calls = 0
        evolution.evolve(10, epoch_length=1, migrant_count=2,
                         end_on=GenerationCount(2))
        self.assertEqual(operator.calls, 0)

    def test_islands_have_independent_generators(self):
        evolution = island_evolution()
        generators = [island.rng for island in evolution.islands]
        self.assertEqual(len({id(rng) for rng in generators}), 3)
        self.assertTrue(evolution.natural)

    def test_preconditions(self):
        evolution = island_evolution()
        with self.assertRaises(PreconditionError):
            evolution.evolve(10, end_on=GenerationCount(1), epoch_length=0)
        with self.assertRaises(PreconditionError):
            evolution.evolve(10, end_on=GenerationCount(1), epoch_length=2,
                             migrant_count=11)
        with self.assertRaises(PreconditionError):
            evolution.evolve(10, epoch_length=2)
        with self.assertRaises(TypeError):
            evolution.evolve(10, end_on=GenerationCount(1))
        with self.assertRaises(PreconditionError):
            IslandEvolution([], RingMigration(), True)
        with self.assertRaises(IllegalStateError):
            evolution.satisfied_conditions


if __name__ == "__main__":
    unittest.main()
