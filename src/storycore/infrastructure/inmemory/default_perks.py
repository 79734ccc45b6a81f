from __future__ import annotations

from storycore.domain.models.perk import Perk, PerkCategory, PerkModifiers, PerkRarity, PerkRequirement


DEFAULT_PERKS: tuple[Perk, ...] = (
    Perk(
        id="gunslinger",
        name="Gunslinger",
        description="Your accuracy with pistols increases by 15%.",
        category=PerkCategory.COMBAT,
        rarity=PerkRarity.COMMON,
        effects=PerkModifiers(abilities={"perception": 2}),
        requirements=PerkRequirement(abilities={"perception": 6}),
        max_rank=3,
    ),
    Perk(
        id="sniper",
        name="Sniper",
        description="Your accuracy at long range increases significantly.",
        category=PerkCategory.COMBAT,
        rarity=PerkRarity.UNCOMMON,
        effects=PerkModifiers(abilities={"perception": 3}),
        requirements=PerkRequirement(abilities={"perception": 7}),
        max_rank=2,
    ),
    Perk(
        id="toughness",
        name="Toughness",
        description="You gain +10% damage resistance.",
        category=PerkCategory.COMBAT,
        rarity=PerkRarity.COMMON,
        effects=PerkModifiers(stats={"maxHealth": 10}),
        max_rank=3,
    ),
    Perk(
        id="quick-hands",
        name="Quick Hands",
        description="You reload weapons 20% faster and gain +1 to Agility skill checks.",
        category=PerkCategory.COMBAT,
        rarity=PerkRarity.UNCOMMON,
        effects=PerkModifiers(abilities={"agility": 1}),
        requirements=PerkRequirement(abilities={"agility": 6}),
        max_rank=2,
    ),
    Perk(
        id="chemist",
        name="Chemist",
        description="Chems last 50% longer when you use them.",
        category=PerkCategory.SURVIVAL,
        rarity=PerkRarity.UNCOMMON,
        effects=PerkModifiers(flags={"chem-duration-bonus": 50}),
        requirements=PerkRequirement(abilities={"intelligence": 6}),
        max_rank=2,
    ),
    Perk(
        id="cannibal",
        name="Cannibal",
        description="You can feed on humanoid corpses to regain Health.",
        category=PerkCategory.SURVIVAL,
        rarity=PerkRarity.RARE,
        effects=PerkModifiers(flags={"cannibal": True}),
    ),
    Perk(
        id="aquaboy",
        name="Aquaboy",
        description="You no longer take radiation damage from swimming and can breathe underwater.",
        category=PerkCategory.SURVIVAL,
        rarity=PerkRarity.UNCOMMON,
        effects=PerkModifiers(flags={"water-breathing": True, "water-radiation-immune": True}),
    ),
    Perk(
        id="night-person",
        name="Night Person",
        description="You gain +2 to Intelligence and Perception between 6:00 PM and 6:00 AM.",
        category=PerkCategory.SURVIVAL,
        rarity=PerkRarity.UNCOMMON,
        effects=PerkModifiers(abilities={"intelligence": 2, "perception": 2}, flags={"night-person": True}),
        requirements=PerkRequirement(mutually_exclusive=("solar-powered",)),
    ),
    Perk(
        id="solar-powered",
        name="Solar Powered",
        description="You gain +2 to Strength and Energy regeneration while in direct sunlight.",
        category=PerkCategory.SURVIVAL,
        rarity=PerkRarity.UNCOMMON,
        effects=PerkModifiers(stats={"energyRegen": 5}, abilities={"strength": 2}, flags={"solar-powered": True}),
        requirements=PerkRequirement(mutually_exclusive=("night-person",)),
    ),
    Perk(
        id="life-giver",
        name="Life Giver",
        description="You gain +20 maximum Health.",
        category=PerkCategory.SURVIVAL,
        rarity=PerkRarity.COMMON,
        effects=PerkModifiers(stats={"maxHealth": 20, "healthRegen": 1}),
        max_rank=3,
    ),
    Perk(
        id="explorer",
        name="Explorer",
        description="All locations on the map are revealed.",
        category=PerkCategory.EXPLORATION,
        rarity=PerkRarity.RARE,
        effects=PerkModifiers(flags={"all-locations-revealed": True}),
        requirements=PerkRequirement(level=8),
    ),
    Perk(
        id="mysterious-stranger",
        name="Mysterious Stranger",
        description="A mysterious stranger appears occasionally to help you in combat.",
        category=PerkCategory.SOCIAL,
        rarity=PerkRarity.LEGENDARY,
        effects=PerkModifiers(flags={"mysterious-stranger": True}),
        requirements=PerkRequirement(abilities={"luck": 8}),
    ),
    Perk(
        id="crystal-heart",
        name="Crystal Heart",
        description="An anomalous artifact that enhances your vitality but makes you more vulnerable to radiation.",
        category=PerkCategory.ANOMALY,
        rarity=PerkRarity.RARE,
        effects=PerkModifiers(stats={"maxHealth": 30, "healthRegen": 2}),
        drawbacks=PerkModifiers(stats={"radiationResistance": -20}),
        is_artifact=True,
    ),
    Perk(
        id="flash",
        name="Flash",
        description="An electrical artifact that enhances your energy but makes you more visible to enemies.",
        category=PerkCategory.ANOMALY,
        rarity=PerkRarity.RARE,
        effects=PerkModifiers(stats={"maxEnergy": 25, "energyRegen": 3}, abilities={"agility": 1}),
        drawbacks=PerkModifiers(abilities={"perception": -1}),
        is_artifact=True,
    ),
    Perk(
        id="bubble",
        name="Bubble",
        description="A gravitational artifact that reduces fall damage but slows your movement.",
        category=PerkCategory.ANOMALY,
        rarity=PerkRarity.UNCOMMON,
        effects=PerkModifiers(flags={"fall-damage-reduction": 75}),
        drawbacks=PerkModifiers(stats={"energy": -10}),
        is_artifact=True,
    ),
    Perk(
        id="moonlight",
        name="Moonlight",
        description="A mysterious artifact that enhances your perception at night but drains your energy during the day.",
        category=PerkCategory.ANOMALY,
        rarity=PerkRarity.RARE,
        effects=PerkModifiers(abilities={"perception": 2}, flags={"night-vision": True}),
        drawbacks=PerkModifiers(stats={"energyRegen": -2}),
        is_artifact=True,
    ),
    Perk(
        id="fireball",
        name="Fireball",
        description="A thermal artifact that provides radiation resistance but makes you more vulnerable to damage.",
        category=PerkCategory.ANOMALY,
        rarity=PerkRarity.UNCOMMON,
        effects=PerkModifiers(stats={"radiationResistance": 40}),
        is_artifact=True,
    ),
    Perk(
        id="thick-skin",
        name="Thick Skin",
        description="Your skin has thickened due to radiation exposure, providing natural armor.",
        category=PerkCategory.MUTATION,
        rarity=PerkRarity.RARE,
        drawbacks=PerkModifiers(abilities={"charisma": -1}),
        requirements=PerkRequirement(flags={"radiation-exposure": True}),
    ),
)
