from __future__ import annotations

import logging
import sqlite3
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .nodes import Atom, Constant

logger = logging.getLogger(__name__)

_CATALOG = "naivelog_relations"


class FactStore:
    """Ordered, duplicate-free ground atoms per relation, kept in sqlite.

    Each relation lives in its own table whose primary key spans every
    column, so the table is a set. Reads use ``ORDER BY`` over all columns,
    which gives a stable order over atoms: relations by name, then tuples
    lexicographically.
    """

    def __init__(self, conn: Optional[sqlite3.Connection] = None) -> None:
        self._db_connection = conn if conn is not None else sqlite3.connect(":memory:")
        self._tables: Dict[str, Tuple[str, int]] = {}
        self._create_catalog_if_not_exists()
        cursor = self._db_connection.cursor()
        for rel_id, name, arity in cursor.execute(f"SELECT id, name, arity FROM {_CATALOG}"):
            self._tables[name] = (f"rel_{rel_id}", arity)

    def __len__(self) -> int:
        cursor = self._db_connection.cursor()
        total = 0
        for table, _ in self._tables.values():
            total += cursor.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
        return total

    def __iter__(self) -> Iterator[Atom]:
        for name, arity in self.relations():
            yield from self.relation(name, arity)

    def __contains__(self, atom: object) -> bool:
        return isinstance(atom, Atom) and self.contains(atom)

    def arity(self, predicate: str) -> Optional[int]:
        entry = self._tables.get(predicate)
        return None if entry is None else entry[1]

    def relations(self) -> List[Tuple[str, int]]:
        return sorted((name, arity) for name, (_, arity) in self._tables.items())

    def contains(self, atom: Atom) -> bool:
        if not atom.is_ground:
            return False
        entry = self._tables.get(atom.relation)
        if entry is None or entry[1] != atom.arity:
            return False
        table, arity = entry
        cursor = self._db_connection.cursor()
        where, values = _where(atom, arity)
        row = cursor.execute(f"SELECT 1 FROM {table} WHERE {where} LIMIT 1", values).fetchone()
        return row is not None

    def insert(self, atom: Atom) -> bool:
        return self.extend((atom,)) == 1

    def extend(self, atoms: Iterable[Atom]) -> int:
        """Insert every atom; return how many were new.

        The batch is checked as a whole first, so a rejected atom leaves the
        store untouched.
        """
        batch = list(atoms)
        self._check(batch)
        inserted = 0
        for a in batch:
            if self._store(a):
                inserted += 1
        self._db_connection.commit()
        return inserted

    def union_all(self, atoms: Iterable[Atom]) -> bool:
        return self.extend(atoms) > 0

    def relation(self, predicate: str, arity: int) -> Tuple[Atom, ...]:
        entry = self._tables.get(predicate)
        if entry is None or entry[1] != arity:
            return ()
        table, _ = entry
        cursor = self._db_connection.cursor()
        columns = _columns(arity)
        cursor.execute(f"SELECT {columns} FROM {table} ORDER BY {columns}")
        if arity == 0:
            return tuple(Atom(predicate) for _ in cursor)
        return tuple(Atom(predicate, tuple(Constant(v) for v in row)) for row in cursor)

    def snapshot(self) -> Dict[str, Tuple[Atom, ...]]:
        return {name: self.relation(name, arity) for name, arity in self.relations()}

    def close(self) -> None:
        self._db_connection.close()

    def _check(self, atoms: List[Atom]) -> None:
        arities = {name: arity for name, (_, arity) in self._tables.items()}
        for atom in atoms:
            if not atom.is_ground:
                raise ValueError(f"cannot store non-ground atom {atom}")
            arity = arities.setdefault(atom.relation, atom.arity)
            if atom.arity != arity:
                raise ValueError(
                    f"Atom arity {atom.arity} does not match arity {arity} of relation '{atom.relation}'"
                )

    def _store(self, atom: Atom) -> bool:
        table, arity = self._table_for(atom.relation, atom.arity)
        cursor = self._db_connection.cursor()
        if arity == 0:
            cursor.execute(f"INSERT OR IGNORE INTO {table} VALUES (0)")
        else:
            placeholders = ", ".join(["?"] * arity)
            cursor.execute(
                f"INSERT OR IGNORE INTO {table} VALUES ({placeholders})",
                tuple(t.value for t in atom.terms),
            )
        return cursor.rowcount == 1

    def _table_for(self, predicate: str, arity: int) -> Tuple[str, int]:
        entry = self._tables.get(predicate)
        if entry is not None:
            return entry
        cursor = self._db_connection.cursor()
        cursor.execute(f"INSERT INTO {_CATALOG} (name, arity) VALUES (?, ?)", (predicate, arity))
        table = f"rel_{cursor.lastrowid}"
        if arity == 0:
            # a nullary relation holds at most the empty tuple
            cursor.execute(f"CREATE TABLE {table} (unit INTEGER PRIMARY KEY CHECK (unit = 0))")
        else:
            columns = _columns(arity)
            cursor.execute(f'''
                CREATE TABLE {table} (
                    {', '.join(f'col{i} TEXT NOT NULL' for i in range(arity))},
                    PRIMARY KEY ({columns})
                ) WITHOUT ROWID
            ''')
        self._tables[predicate] = (table, arity)
        logger.debug("created relation %s/%d as %s", predicate, arity, table)
        return table, arity

    def _create_catalog_if_not_exists(self) -> None:
        cursor = self._db_connection.cursor()
        cursor.execute(f'''
            CREATE TABLE IF NOT EXISTS {_CATALOG} (
                id INTEGER PRIMARY KEY,
                name TEXT NOT NULL UNIQUE,
                arity INTEGER NOT NULL
            )
        ''')
        self._db_connection.commit()


def _columns(arity: int) -> str:
    if arity == 0:
        return "unit"
    return ", ".join(f"col{i}" for i in range(arity))


def _where(atom: Atom, arity: int) -> Tuple[str, Tuple[str, ...]]:
    if arity == 0:
        return "unit = 0", ()
    conditions = " AND ".join(f"col{i} = ?" for i in range(arity))
    return conditions, tuple(t.value for t in atom.terms)
