"""
Conteneur d'injection de dépendances et configuration application.

Instancie les composants centraux (settings, client du store, bus d'évènements, caches, DAO,
services) et expose une instance par défaut `container` utilisée par la couche HTTP.
"""

from lexicon.core import vocabulary as lx
from lexicon.core.events import EventBus
from lexicon.core.last_modified import LastModifiedCache
from lexicon.core.settings import Settings, get_settings
from lexicon.infra.dao.asset_dao import ResourceDao, TermDao, VocabularyDao
from lexicon.infra.dao.change_record_dao import ChangeRecordDao
from lexicon.infra.dao.comment_dao import CommentDao
from lexicon.infra.dao.search_dao import SearchDao, load_fts_template
from lexicon.infra.dao.user_dao import UserDao
from lexicon.infra.store.base import StoreClient
from lexicon.infra.store.rdflib_store import RdflibStoreClient
from lexicon.infra.store.sparql_store import SparqlStoreClient
from lexicon.services.activity_service import ActivityService
from lexicon.services.search_service import SearchService


def build_store(settings: Settings) -> StoreClient:
    """Construit le client du store selon `STORE_BACKEND` ("memory" ou "sparql")."""
    backend = settings.STORE_BACKEND.lower()
    if backend == "sparql":
        if not settings.STORE_QUERY_URL:
            raise RuntimeError("STORE_QUERY_URL required when STORE_BACKEND=sparql")
        return SparqlStoreClient(
            settings.STORE_QUERY_URL,
            update_url=settings.STORE_UPDATE_URL,
            timeout_s=settings.STORE_TIMEOUT_S,
        )
    if backend == "memory":
        return RdflibStoreClient(data_file=settings.STORE_DATA_FILE)
    raise RuntimeError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND}")


class Container:
    def __init__(self, settings: Settings | None = None, store: StoreClient | None = None):
        self.settings = settings or get_settings()
        self.store = store if store is not None else build_store(self.settings)
        self.storage_backend = self.store.backend
        self.bus = EventBus()

        # Un cache de dernière modification par source
        self.resource_last_modified = LastModifiedCache("resource")
        self.resource_last_modified.subscribe(self.bus, (lx.RESOURCE, lx.DOCUMENT, lx.FILE))
        self.term_last_modified = LastModifiedCache("term")
        self.term_last_modified.subscribe(self.bus, (lx.TERM,))
        self.vocabulary_last_modified = LastModifiedCache("vocabulary")
        self.vocabulary_last_modified.subscribe(self.bus, (lx.VOCABULARY,))

        language = self.settings.LANGUAGE
        self.user_dao = UserDao(self.store)
        self.comment_dao = CommentDao(self.store)
        self.change_record_dao = ChangeRecordDao(self.store, bus=self.bus)
        self.resource_dao = ResourceDao(
            self.store, self.user_dao, self.comment_dao, self.resource_last_modified, language
        )
        self.term_dao = TermDao(
            self.store, self.user_dao, self.comment_dao, self.term_last_modified, language
        )
        self.vocabulary_dao = VocabularyDao(
            self.store, self.user_dao, self.comment_dao, self.vocabulary_last_modified, language
        )
        self.search_dao = SearchDao(
            self.store, load_fts_template(self.settings.FTS_QUERY_FILE), language
        )

        self.activity = ActivityService(
            (self.resource_dao, self.term_dao, self.vocabulary_dao),
            self.comment_dao,
            workers=self.settings.FANOUT_WORKERS,
        )
        self.search = SearchService(self.search_dao)


container = Container()
