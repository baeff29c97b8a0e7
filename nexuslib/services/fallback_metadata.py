"""
Static metadata for well-known titles that have no storefront identifier.
"""
from nexuslib.candidates import MetadataRecord
from nexuslib.constants import DEFAULT_DESCRIPTION, DEFAULT_DEVELOPER
from nexuslib.titles import lookup_by_title

DEFAULT_SOURCE = "default"

KNOWN_GAMES = {
    "league of legends": MetadataRecord(
        cover_url="https://cmsassets.rgpub.io/sanity/images/dsfx7636/news/7d30fd4bf86c9412ba5a7c38685aad14e7ec3cfa-1920x1080.jpg",
        hero_url="https://cmsassets.rgpub.io/sanity/images/dsfx7636/news/7d30fd4bf86c9412ba5a7c38685aad14e7ec3cfa-1920x1080.jpg",
        description="League of Legends is a team-based strategy game.",
        developer="Riot Games",
        source="fallback",
    ),
    "valorant": MetadataRecord(
        cover_url="https://cmsassets.rgpub.io/sanity/images/dsfx7636/news/4ad45e22ccbb5b9b29ec5c5a66055e3a3eb6c9fb-1920x1080.jpg",
        hero_url="https://cmsassets.rgpub.io/sanity/images/dsfx7636/news/4ad45e22ccbb5b9b29ec5c5a66055e3a3eb6c9fb-1920x1080.jpg",
        description="VALORANT is a free-to-play 5v5 tactical shooter.",
        developer="Riot Games",
        source="fallback",
    ),
    "fortnite": MetadataRecord(
        cover_url="https://cdn1.epicgames.com/offer/fn/23BR_C4S1_EGS_Launcher_Blade_1200x1600_1200x1600-75c3f3a45e4017b838feaa6815c22498",
        hero_url="https://cdn2.unrealengine.com/social-image-chapter4-s3-3840x2160-d35912cc25ad.jpg",
        description="Fortnite is the completely free multiplayer game.",
        developer="Epic Games",
        source="fallback",
    ),
    "minecraft": MetadataRecord(
        cover_url="https://www.minecraft.net/content/dam/games/minecraft/key-art/Games_Subnav_702x508_Box_Art-Latest.jpg",
        hero_url="https://www.minecraft.net/content/dam/games/minecraft/key-art/MC-Vanilla-keyart-702x508.jpg",
        description="Minecraft is a game about placing blocks and going on adventures.",
        developer="Mojang Studios",
        source="fallback",
    ),
    "genshin impact": MetadataRecord(
        cover_url="https://webstatic.hoyoverse.com/upload/event/2020/11/06/98b6ed6b98ad5e7b5fbf26b0c4eb3bb0_1082432428905710452.jpg",
        hero_url="https://fastcdn.hoyoverse.com/content-v2/plat/114197/c3773f9f285b99c56b9f7e3e93cb79b0_3824539933557904091.jpg",
        description="Step into Teyvat, a vast world teeming with life and flowing with elemental energy.",
        developer="HoYoverse",
        source="fallback",
    ),
    "honkai: star rail": MetadataRecord(
        cover_url="https://webstatic.hoyoverse.com/upload/op-public/2023/04/13/0e03baad6628f5b5f1f5c93e764b19c6_8082814547481384145.jpg",
        hero_url="https://fastcdn.hoyoverse.com/content-v2/hkrpg/114273/21f7bf63c6f99a5fb0c9c5cd9ce7bb5e_2322066946206497986.jpg",
        description="Honkai: Star Rail is a space fantasy RPG.",
        developer="HoYoverse",
        source="fallback",
    ),
}


class FallbackMetadata:
    """Hardcoded table lookup plus the generic default record"""

    def __init__(self, table=None):
        self.table = KNOWN_GAMES if table is None else table

    def lookup(self, title):
        record = lookup_by_title(self.table, title)
        if record is None:
            return None
        return MetadataRecord(
            cover_url=record.cover_url,
            hero_url=record.hero_url,
            description=record.description,
            developer=record.developer,
            source="fallback",
        )

    @staticmethod
    def default():
        return MetadataRecord(description=DEFAULT_DESCRIPTION, developer=DEFAULT_DEVELOPER, source=DEFAULT_SOURCE)
