# src/geovector/db/client.py

import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import numpy as np
import shapely
from shapely import STRtree
from sqlalchemy import MetaData, Table, create_engine, insert, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from tqdm import tqdm

from geovector.codecs.binary import FORMAT_VERSION, encode_feature, decode_feature
from geovector.codecs.shapefile import resolve_shapefile_path, read_shapefile_frame, iter_shapefile_records
from geovector.coords import Coordinate
from geovector.exceptions import GeoVectorError, FormatError
from geovector.vector.attributes import AttributeTable
from geovector.vector.layer import VectorCollection
from geovector.vector.query import point_in_polygon

from .models import (
    Base, SourceInfo, VectorRecord, ATTRIBUTE_TABLE, ROW_ID_COLUMN, build_attribute_table
)

log = logging.getLogger(__name__)

AttributePredicate = Union[str, Callable[[AttributeTable], bool]]

# keeps IN (...) lists below the SQLite bound parameter limit
_ID_CHUNK = 500

def _chunks(values: List[int], size: int) -> Iterable[List[int]]:
    for i in range(0, len(values), size):
        yield values[i:i + size]

class VectorDatabase:
    """
    Read-only store of shapefile records with a bounding-box index.

    The record store is a SQLite file managed through SQLAlchemy. Bounding
    boxes are loaded into a shapely STRtree when the database is opened, so
    fetches only decode the geometry of the records they return. Fetches
    never mutate state and may run from several threads.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Opens a database previously built by from_shapefile.

        Args:
            path (Union[str, Path]): The SQLite database file.

        Raises:
            FileNotFoundError: If the file does not exist.
            FormatError: If the file was built with another binary format version.
        """
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"Vector database not found: {self.path}")

        self.engine = create_engine(f"sqlite:///{self.path}", echo=False)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

        try:
            with self.SessionLocal() as session:
                info = session.execute(select(SourceInfo)).scalars().first()
            self.attribute_table = Table(ATTRIBUTE_TABLE, MetaData(), autoload_with=self.engine)
        except SQLAlchemyError as e:
            self.engine.dispose()
            raise FormatError(f"{self.path} is not a vector database: {e}") from e

        if info is None or info.format_version != FORMAT_VERSION:
            self.engine.dispose()
            found = None if info is None else info.format_version
            raise FormatError(f"Unsupported vector database format version {found} in {self.path}")

        self.source_path = info.source_path
        self._load_index()

    def _load_index(self) -> None:
        stmt = select(
            VectorRecord.row_id, VectorRecord.min_x, VectorRecord.min_y, VectorRecord.max_x, VectorRecord.max_y
        ).order_by(VectorRecord.row_id)
        with self.SessionLocal() as session:
            rows = session.execute(stmt).all()

        if rows:
            table = np.array(rows, dtype=np.float64)
            self._row_ids = table[:, 0].astype(np.int64)
            boxes = shapely.box(table[:, 1], table[:, 2], table[:, 3], table[:, 4])
        else:
            self._row_ids = np.empty(0, dtype=np.int64)
            boxes = []
        self._tree = STRtree(boxes)
        log.info(f"Opened vector database {self.path.name} with {len(self._row_ids)} records")

    @classmethod
    def from_shapefile(
        cls,
        path: Union[str, Path],
        cache_dir: Optional[Union[str, Path]] = None,
        reset: bool = False,
        batch_size: int = 5000
    ) -> 'VectorDatabase':
        """
        Builds (or reuses) the database for a shapefile.

        The database lives next to the shapefile unless cache_dir is given. An
        existing database at least as new as the shapefile is reused.

        Args:
            path (Union[str, Path]): Shapefile path; the .shp extension may be left off.
            cache_dir (Optional[Union[str, Path]]): Directory holding the database file.
            reset (bool): Rebuild even when a current database exists.
            batch_size (int): Records held in memory before each bulk insert.

        Returns:
            VectorDatabase: The opened database.
        """
        shp_path = resolve_shapefile_path(path)
        directory = Path(cache_dir) if cache_dir else shp_path.parent
        db_path = directory / f"{shp_path.stem}.sqlite"

        if db_path.exists() and not reset:
            if db_path.stat().st_mtime >= shp_path.stat().st_mtime:
                try:
                    return cls(db_path)
                except FormatError as e:
                    log.warning(f"Rebuilding stale vector database: {e}")
            else:
                log.info(f"{shp_path.name} is newer than {db_path.name}, rebuilding")

        if db_path.exists():
            log.warning(f"Removing existing vector database at {db_path}.")
            os.remove(db_path)

        directory.mkdir(parents=True, exist_ok=True)
        count = _build_database(shp_path, db_path, batch_size)
        log.info(f"Built vector database {db_path.name} with {count} records")
        return cls(db_path)

    def close(self) -> None:
        self.engine.dispose()

    def __enter__(self) -> 'VectorDatabase':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._row_ids)

    def __repr__(self) -> str:
        return f"<VectorDatabase path={self.path.name} records={len(self)}>"

    def _decode(self, blobs: Iterable[bytes]) -> Optional[VectorCollection]:
        features = [decode_feature(blob) for blob in blobs]
        if not features:
            return None
        return VectorCollection._adopt(features)

    def _fetch_ids(self, row_ids: List[int]) -> List[bytes]:
        blobs: List[bytes] = []
        with self.SessionLocal() as session:
            for chunk in _chunks(sorted(row_ids), _ID_CHUNK):
                stmt = select(VectorRecord.geometry).where(
                    VectorRecord.row_id.in_(chunk)
                ).order_by(VectorRecord.row_id)
                blobs.extend(session.execute(stmt).scalars())
        return blobs

    def fetch_all(self) -> Optional[VectorCollection]:
        """
        Returns every record in file order, or None for an empty database.
        """
        with self.SessionLocal() as session:
            blobs = session.execute(
                select(VectorRecord.geometry).order_by(VectorRecord.row_id)
            ).scalars().all()
        return self._decode(blobs)

    def fetch_matching(self, predicate: AttributePredicate) -> Optional[VectorCollection]:
        """
        Returns the records whose attributes satisfy a predicate.

        Args:
            predicate (AttributePredicate): Either a SQL WHERE clause over the
                shapefile field names (e.g. "POP > 1000 AND NAME LIKE 'A%'")
                or a callable taking the record's AttributeTable.

        Raises:
            GeoVectorError: If the SQL clause cannot be evaluated.

        Returns:
            Optional[VectorCollection]: Matching records in file order, or None.
        """
        if isinstance(predicate, str):
            # colons are literal here, not bind parameters
            clause = text(predicate.replace(":", "\\:"))
            matched = select(self.attribute_table.c[ROW_ID_COLUMN]).where(clause)
            stmt = select(VectorRecord.geometry).where(
                VectorRecord.row_id.in_(matched)
            ).order_by(VectorRecord.row_id)
            try:
                with self.SessionLocal() as session:
                    blobs = session.execute(stmt).scalars().all()
            except SQLAlchemyError as e:
                raise GeoVectorError(f"Invalid attribute predicate '{predicate}': {e}") from e
            return self._decode(blobs)

        if not callable(predicate):
            raise TypeError(f"Expected SQL string or callable predicate, got {type(predicate)}")

        with self.SessionLocal() as session:
            rows = session.execute(
                select(VectorRecord.row_id, VectorRecord.attributes).order_by(VectorRecord.row_id)
            ).all()
        row_ids = [row_id for row_id, attributes in rows if predicate(AttributeTable(attributes))]
        return self._decode(self._fetch_ids(row_ids))

    def fetch_surrounding(self, coord: Coordinate) -> Optional[VectorCollection]:
        """
        Returns the areal records containing a location.

        Candidates come from the bounding-box index; each one is decoded and
        kept only if the point falls inside it, holes excluded.

        Args:
            coord (Coordinate): Location in geographic radians.

        Returns:
            Optional[VectorCollection]: Containing records in file order, or None.
        """
        hits = self._tree.query(shapely.Point(coord[0], coord[1]))
        if len(hits) == 0:
            return None

        candidates = self._fetch_ids([int(i) for i in self._row_ids[hits]])
        features = []
        for blob in candidates:
            feature = decode_feature(blob)
            if point_in_polygon(VectorCollection._adopt([feature]), coord):
                features.append(feature)
        if not features:
            return None
        return VectorCollection._adopt(features)

def _build_database(shp_path: Path, db_path: Path, batch_size: int) -> int:
    gdf = read_shapefile_frame(shp_path)
    fields: Dict[str, Any] = {
        col: gdf[col].dtype for col in gdf.columns if col != gdf.geometry.name
    }

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    metadata = MetaData()
    attribute_table = build_attribute_table(metadata, fields)

    total_inserted = 0
    records: List[Dict[str, Any]] = []
    attribute_rows: List[Dict[str, Any]] = []

    def flush(session) -> int:
        session.execute(insert(VectorRecord), records)
        session.execute(insert(attribute_table), attribute_rows)
        session.commit()
        flushed = len(records)
        records.clear()
        attribute_rows.clear()
        return flushed

    try:
        Base.metadata.create_all(bind=engine)
        metadata.create_all(bind=engine)

        with SessionLocal() as session:
            for row_id, feature in tqdm(
                iter_shapefile_records(gdf), total=len(gdf), desc=f"Indexing {shp_path.name}", unit="rec"
            ):
                if feature is None:
                    continue
                box = feature.bounding_box()
                attributes = feature.attributes.to_dict()
                records.append({
                    "row_id": row_id,
                    "min_x": box.ll.x,
                    "min_y": box.ll.y,
                    "max_x": box.ur.x,
                    "max_y": box.ur.y,
                    "attributes": attributes,
                    "geometry": encode_feature(feature)
                })
                attribute_rows.append({ROW_ID_COLUMN: row_id, **attributes})

                if len(records) >= batch_size:
                    total_inserted += flush(session)

            if records:
                total_inserted += flush(session)

            session.add(SourceInfo(
                source_path=str(shp_path.resolve()),
                format_version=FORMAT_VERSION,
                feature_count=total_inserted
            ))
            session.commit()
    except SQLAlchemyError as e:
        engine.dispose()
        raise GeoVectorError(f"Failed to build vector database {db_path}: {e}") from e

    engine.dispose()
    return total_inserted
