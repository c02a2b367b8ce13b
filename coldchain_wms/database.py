"""
In-memory domain store: engine, session factory and the CRUD contract
used by the API routers and the sensor simulator.
"""
import asyncio
import random
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Optional, Sequence, Type, TypeVar

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from coldchain_wms.config import Settings
from coldchain_wms.errors import NotFoundError, RequestTimeout
from coldchain_wms.utils.logger import get_logger

logger = get_logger(__name__)

# Base class for models
Base = declarative_base()

ModelT = TypeVar("ModelT")


def _get_async_url(url: str) -> str:
    """Convert a sqlite URL to its aiosqlite variant"""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///")
    return url


def generate_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _entity_name(model: type) -> str:
    return getattr(model, "entity_name", model.__name__)


class Transaction:
    """
    One unit of work against the store.

    Every mutation is flushed immediately so later reads in the same
    transaction see it; the owning ``DomainStore.transaction`` commits
    or rolls back the whole unit.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert(self, model: Type[ModelT], values: Any) -> ModelT:
        record = model(**values) if isinstance(values, dict) else values
        if not getattr(record, "id", None):
            record.id = generate_id(getattr(model, "id_prefix", model.__tablename__))
        self.session.add(record)
        await self.session.flush()
        return record

    async def find(self, model: Type[ModelT], record_id: Any) -> Optional[ModelT]:
        if record_id is None:
            return None
        return await self.session.get(model, record_id)

    async def require(self, model: Type[ModelT], record_id: Any) -> ModelT:
        record = await self.find(model, record_id)
        if record is None:
            raise NotFoundError(_entity_name(model), record_id)
        return record

    async def update(self, model: Type[ModelT], record_id: Any, patch: dict[str, Any]) -> ModelT:
        record = await self.require(model, record_id)
        for key, value in patch.items():
            setattr(record, key, value)
        await self.session.flush()
        return record

    async def remove(self, model: type, record_id: Any) -> bool:
        record = await self.find(model, record_id)
        if record is None:
            return False
        await self.session.delete(record)
        await self.session.flush()
        return True

    async def where(
        self,
        model: Type[ModelT],
        *criteria: Any,
        order_by: Optional[Any] = None,
        options: Iterable[Any] = (),
    ) -> Sequence[ModelT]:
        query = select(model).where(*criteria).options(*options)
        if order_by is not None:
            query = query.order_by(order_by)
        result = await self.session.execute(query)
        return result.scalars().all()

    async def first(self, model: Type[ModelT], *criteria: Any) -> Optional[ModelT]:
        result = await self.session.execute(select(model).where(*criteria).limit(1))
        return result.scalar_one_or_none()


class DomainStore:
    """
    Explicit context object owning the in-memory database.

    ``init()`` creates the schema and seeds it once; ``shutdown()`` stops
    an attached simulator and disposes the engine.
    """

    def __init__(self, settings: Settings, rng: Optional[random.Random] = None):
        self.settings = settings
        self.database_url = _get_async_url(settings.DATABASE_URL)
        self.is_sqlite = self.database_url.startswith("sqlite")

        engine_kwargs: dict[str, Any] = {
            "echo": settings.DEBUG,
            "future": True,
        }
        if self.is_sqlite and ":memory:" in self.database_url:
            # One shared connection, otherwise each session sees its own empty database
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}

        self.engine = create_async_engine(self.database_url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self.rng = rng or random.Random(settings.RANDOM_SEED)
        self.lock = asyncio.Lock()
        self.simulator = None
        self.initialized = False

    async def init(self, seed: bool = True) -> None:
        if self.initialized:
            return

        # Import models so every table is registered on Base.metadata
        import coldchain_wms.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

        if seed:
            from coldchain_wms.services.seed import seed_database

            async with self.transaction() as tx:
                counts = await seed_database(tx, self.rng)
            logger.info(f"Seeded domain store: {counts}")

        self.initialized = True

    async def shutdown(self) -> None:
        if self.simulator is not None:
            await self.simulator.stop()
        await self.engine.dispose()
        self.initialized = False
        logger.info("Domain store released")

    @asynccontextmanager
    async def transaction(self, timeout: Optional[float] = None) -> AsyncIterator[Transaction]:
        """
        Serialize a unit of work; commits on success, rolls back on error.

        With ``timeout`` the whole unit, waiting for the lock included, is
        cancelled once the deadline passes and ``TimeoutError`` is raised
        after the rollback.
        """
        async with asyncio.timeout(timeout):
            async with self.lock:
                async with self.session_factory() as session:
                    try:
                        yield Transaction(session)
                        await session.commit()
                    except BaseException:
                        await session.rollback()
                        raise


def get_store(request: Request) -> DomainStore:
    return request.app.state.store


async def get_db(request: Request) -> AsyncIterator[Transaction]:
    """Dependency for getting a store transaction bounded by the request deadline"""
    store: DomainStore = request.app.state.store
    timeout = store.settings.REQUEST_TIMEOUT_SECONDS
    try:
        async with store.transaction(timeout=timeout) as tx:
            yield tx
    except TimeoutError as exc:
        logger.warning(f"{request.method} {request.url.path} timed out after {timeout}s, rolled back")
        raise RequestTimeout("Request timed out") from exc
