from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from automation_engine.adapters.secondary.persistence.models import ArtistFollowerModel
from automation_engine.ports.secondary.providers import IFollowerDirectory


class PostgresFollowerDirectory(IFollowerDirectory):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def list_follower_ids(self, artist_id: str) -> list[str]:
        result = await self._session.execute(
            select(ArtistFollowerModel.follower_id)
            .where(ArtistFollowerModel.artist_id == str(artist_id))
            .order_by(ArtistFollowerModel.followed_at, ArtistFollowerModel.follower_id)
        )
        return list(result.scalars().all())
