import sys
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from storycore.application.services.state_mutations import set_flag
from storycore.domain.models.dialogue import Npc
from storycore.domain.models.perk import Perk
from storycore.domain.models.player_state import PlayerState
from storycore.infrastructure.inmemory.default_perks import DEFAULT_PERKS
from storycore.infrastructure.inmemory.inmemory_npc_repo import InMemoryNpcRepository
from storycore.infrastructure.inmemory.inmemory_perk_repo import InMemoryPerkRepository
from storycore.infrastructure.inmemory.inmemory_player_state_repo import InMemoryPlayerStateRepository


class InMemoryPlayerStateRepositoryTests(unittest.TestCase):
    def test_save_and_load_returns_equal_but_independent_state(self) -> None:
        repo = InMemoryPlayerStateRepository()
        state = set_flag(PlayerState(), "met-jesse", True)

        repo.save("slot-1", state)
        loaded = repo.load("slot-1")

        self.assertEqual(state, loaded)
        self.assertIsNot(state, loaded)
        self.assertIsNone(repo.load("slot-2"))

    def test_slots_are_listed_sorted_and_deletable(self) -> None:
        repo = InMemoryPlayerStateRepository()
        repo.save("zeta", PlayerState())
        repo.save("alpha", PlayerState())

        self.assertEqual(["alpha", "zeta"], repo.list_slots())
        self.assertTrue(repo.delete("zeta"))
        self.assertFalse(repo.delete("zeta"))
        self.assertEqual(["alpha"], repo.list_slots())

    def test_blank_slot_name_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            InMemoryPlayerStateRepository().save("  ", PlayerState())


class InMemoryCatalogTests(unittest.TestCase):
    def test_perk_repository_defaults_to_builtin_catalog(self) -> None:
        repo = InMemoryPerkRepository()

        self.assertEqual(len(DEFAULT_PERKS), len(repo.list_all()))
        self.assertTrue(repo.get("crystal-heart").is_artifact)
        self.assertIsNone(repo.get("laser-eyes"))

        repo.add(Perk(id="scavenger", name="Scavenger"))
        self.assertEqual("Scavenger", repo.get(" scavenger ").name)

    def test_builtin_catalog_ids_are_unique(self) -> None:
        ids = [perk.id for perk in DEFAULT_PERKS]
        self.assertEqual(len(ids), len(set(ids)))

    def test_npc_repository_add_and_get(self) -> None:
        repo = InMemoryNpcRepository()
        self.assertEqual([], repo.list_all())

        repo.add(Npc(id="guard", name="Guard", initial_node_id="halt"))

        self.assertEqual("Guard", repo.get("guard").name)
        self.assertIsNone(repo.get("drifter"))


if __name__ == "__main__":
    unittest.main()
