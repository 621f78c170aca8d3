"""
Gestion de la base de données SQLite des exercices.

Le schéma reprend celui de la base `academia.sqlite3` historique: deux tables
(`grupos_musculares`, `exercicios`) et la vue `exercios_vw` interrogée par les
outils MCP.
"""
import logging
import sqlite3
import threading
from contextlib import contextmanager
from typing import Generator, Optional, List

from .constants import DATABASE_FILE, EXERCISES_VIEW
from .exceptions import DatabaseError
from .models import Exercicio

logger = logging.getLogger(__name__)

_EXERCISE_COLUMNS = "id, nome, grupo_muscular, series, repeticoes, intervalo_segundos, observacoes"


@contextmanager
def get_db(db_path: str = DATABASE_FILE) -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager pour les connexions DB.

    Yields:
        Connection SQLite avec row_factory=sqlite3.Row
    """
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_database(db_path: str = DATABASE_FILE):
    """
    Initialise la base de données SQLite (tables + vue), de façon idempotente.
    """
    try:
        with get_db(db_path) as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS grupos_musculares (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    nome TEXT UNIQUE NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS exercicios (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    nome TEXT NOT NULL,
                    grupo_id INTEGER NOT NULL,
                    series INTEGER NOT NULL DEFAULT 3,
                    repeticoes TEXT NOT NULL DEFAULT '10',
                    intervalo_segundos INTEGER NOT NULL DEFAULT 60,
                    observacoes TEXT,
                    FOREIGN KEY (grupo_id) REFERENCES grupos_musculares(id)
                )
            """)

            cursor.execute(f"""
                CREATE VIEW IF NOT EXISTS {EXERCISES_VIEW} AS
                SELECT e.id AS id,
                       e.nome AS nome,
                       g.nome AS grupo_muscular,
                       e.series AS series,
                       e.repeticoes AS repeticoes,
                       e.intervalo_segundos AS intervalo_segundos,
                       e.observacoes AS observacoes
                FROM exercicios e
                JOIN grupos_musculares g ON g.id = e.grupo_id
            """)
            conn.commit()
    except sqlite3.Error as e:
        raise DatabaseError(f"Initialisation impossible: {e}", operation="init") from e

    logger.info("Base de données initialisée: %s", db_path)


# ============================================================================
# Données de départ
# ============================================================================

SEED_EXERCISES = {
    "Costas (dorsais, lombar)": [
        ("Puxada frontal", 4, "10-12", 60, "Puxar a barra até a altura do queixo"),
        ("Remada curvada", 4, "8-10", 90, "Manter a coluna neutra durante todo o movimento"),
        ("Levantamento terra", 3, "6-8", 120, "Priorizar a técnica antes da carga"),
    ],
    "Ombros (deltoides)": [
        ("Desenvolvimento com halteres", 4, "10", 60, "Não travar os cotovelos no topo"),
        ("Elevação lateral", 3, "12-15", 45, "Subir até a linha dos ombros"),
    ],
    "Pernas": [
        ("Agachamento livre", 4, "8-12", 90, "Joelhos alinhados com a ponta dos pés"),
        ("Leg press 45", 4, "10-12", 90, "Não estender totalmente os joelhos"),
        ("Cadeira extensora", 3, "12-15", 60, "Pausa de 1s na contração"),
    ],
    "Peito (peitoral)": [
        ("Supino reto", 4, "8-10", 90, "Escápulas retraídas e pés firmes no chão"),
        ("Supino inclinado com halteres", 3, "10-12", 75, "Banco entre 30 e 45 graus"),
        ("Crucifixo", 3, "12", 60, "Cotovelos levemente flexionados"),
    ],
    "Braços (Bíceps, Tríceps, Antebraço)": [
        ("Rosca direta", 3, "10-12", 60, "Evitar balançar o tronco"),
        ("Tríceps pulley", 3, "12", 60, "Cotovelos fixos ao lado do corpo"),
        ("Rosca punho", 3, "15", 45, "Amplitude completa do punho"),
    ],
}


def seed_database(db_path: str = DATABASE_FILE) -> int:
    """
    Insère le catalogue de départ si la base ne contient aucun exercice.

    Returns:
        Nombre d'exercices insérés (0 si la base était déjà peuplée)
    """
    try:
        with get_db(db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM exercicios")
            if cursor.fetchone()[0] > 0:
                return 0

            inserted = 0
            for grupo, exercicios in SEED_EXERCISES.items():
                cursor.execute("INSERT OR IGNORE INTO grupos_musculares (nome) VALUES (?)", (grupo,))
                cursor.execute("SELECT id FROM grupos_musculares WHERE nome = ?", (grupo,))
                grupo_id = cursor.fetchone()[0]
                for nome, series, repeticoes, intervalo, observacoes in exercicios:
                    cursor.execute(
                        """
                        INSERT INTO exercicios (nome, grupo_id, series, repeticoes, intervalo_segundos, observacoes)
                        VALUES (?, ?, ?, ?, ?, ?)
                        """,
                        (nome, grupo_id, series, repeticoes, intervalo, observacoes)
                    )
                    inserted += 1
            conn.commit()
    except sqlite3.Error as e:
        raise DatabaseError(f"Insertion des données de départ impossible: {e}", operation="seed") from e

    logger.info("%d exercice(s) de départ insérés dans %s", inserted, db_path)
    return inserted


# ============================================================================
# Repository (connexion persistante partagée par les outils)
# ============================================================================

class ExerciseRepository:
    """Accès en lecture à la vue des exercices.

    Une seule connexion est ouverte paresseusement et réutilisée; `close()` la
    libère lors de l'arrêt du serveur.
    """

    def __init__(self, db_path: str = DATABASE_FILE):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()
        self._closed = False

    def _connection(self) -> sqlite3.Connection:
        if self._closed:
            raise DatabaseError("Repository fermé", operation="connect")
        if self._conn is None:
            try:
                self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            except sqlite3.Error as e:
                raise DatabaseError(f"Connexion impossible: {e}", operation="connect") from e
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _query(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        with self._lock:
            try:
                cursor = self._connection().execute(sql, params)
                return cursor.fetchall()
            except sqlite3.Error as e:
                raise DatabaseError(str(e), operation="query") from e

    def find_by_group(self, grupo_muscular: str) -> List[Exercicio]:
        """Recherche partielle (LIKE) sur le groupe musculaire."""
        rows = self._query(
            f"SELECT {_EXERCISE_COLUMNS} FROM {EXERCISES_VIEW} WHERE grupo_muscular LIKE ?",
            (f"%{grupo_muscular}%",)
        )
        return [Exercicio.from_row(row) for row in rows]

    def list_groups(self) -> List[str]:
        rows = self._query(
            f"SELECT DISTINCT grupo_muscular FROM {EXERCISES_VIEW} ORDER BY grupo_muscular"
        )
        return [row["grupo_muscular"] for row in rows]

    def find_by_name(self, nome: str) -> List[Exercicio]:
        """Recherche partielle (LIKE) sur le nom de l'exercice."""
        rows = self._query(
            f"SELECT {_EXERCISE_COLUMNS} FROM {EXERCISES_VIEW} WHERE nome LIKE ?",
            (f"%{nome}%",)
        )
        return [Exercicio.from_row(row) for row in rows]

    def list_all(self) -> List[Exercicio]:
        rows = self._query(
            f"SELECT {_EXERCISE_COLUMNS} FROM {EXERCISES_VIEW} ORDER BY grupo_muscular, nome"
        )
        return [Exercicio.from_row(row) for row in rows]

    def get_by_id(self, exercicio_id: int) -> Optional[Exercicio]:
        rows = self._query(
            f"SELECT {_EXERCISE_COLUMNS} FROM {EXERCISES_VIEW} WHERE id = ?",
            (exercicio_id,)
        )
        return Exercicio.from_row(rows[0]) if rows else None

    def close(self):
        """Ferme la connexion (idempotent)."""
        with self._lock:
            self._closed = True
            if self._conn is not None:
                self._conn.close()
                self._conn = None
