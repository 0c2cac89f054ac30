"""Synthetic value generation with foreign-key linking."""

import logging
import random
import re
from datetime import datetime, date
from typing import Any, Dict, List, Optional, Sequence, Union
from faker import Faker

from .models import ColumnDescriptor, ForeignKeyEdge, SemanticKind, TableDescriptor


logger = logging.getLogger(__name__)

# A pool value is either an auto-increment row index or a rendered SQL literal.
KeyValue = Union[int, str]

CURRENT_TIMESTAMP_DEFAULTS = {"CURRENT_TIMESTAMP", "CURRENT_TIMESTAMP()", "NOW()"}

INTEGER_RANGES = {
    "tinyint": (-128, 127, 255),
    "smallint": (-32768, 32767, 65535),
    "mediumint": (-8388608, 8388607, 16777215),
    "int": (-2147483648, 2147483647, 4294967295),
    "bigint": (-9223372036854775808, 9223372036854775807, 18446744073709551615),
}

ENUM_VALUE_PATTERN = re.compile(r"'((?:[^']|'')*)'")


def quote_literal(value: str) -> str:
    """Render a Python string as a MySQL string literal."""
    return "'" + value.replace("\\", "\\\\").replace("'", "''") + "'"


def quote_identifier(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


def _years_ago(moment: datetime, years: int) -> datetime:
    try:
        return moment.replace(year=moment.year - years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return moment.replace(year=moment.year - years, day=28)


class GeneratedKeyPool:
    """Synthetic primary-key values produced for one table during a run."""

    def __init__(self, table: str, values: Optional[List[KeyValue]] = None, placeholder: bool = False):
        self.table = table
        self.values: List[KeyValue] = list(values or [])
        self.placeholder = placeholder

    def append(self, value: KeyValue) -> None:
        self.values.append(value)

    def pick(self, rng: random.Random) -> KeyValue:
        return self.values[rng.randrange(len(self.values))]

    def __contains__(self, value: Any) -> bool:
        return value in self.values

    def __len__(self) -> int:
        return len(self.values)


class KeyPoolRegistry:
    """Per-table key pools, created lazily and discarded at the end of a run."""

    def __init__(self, placeholder_size: int):
        self.placeholder_size = placeholder_size
        self._pools: Dict[str, GeneratedKeyPool] = {}

    def get(self, table: str) -> Optional[GeneratedKeyPool]:
        return self._pools.get(table)

    def pool_for(self, table: str) -> GeneratedKeyPool:
        """Pool of a referenced table, seeded with 1..N if it has none yet."""
        pool = self._pools.get(table)
        if pool is None or not pool.values:
            logger.debug(f"No generated keys for {table} yet, using placeholder 1..{self.placeholder_size}")
            pool = GeneratedKeyPool(table, range(1, self.placeholder_size + 1), placeholder=True)
            self._pools[table] = pool
        return pool

    def record(self, table: str, value: KeyValue) -> None:
        pool = self._pools.get(table)
        if pool is None or pool.placeholder:
            self._pools[table] = GeneratedKeyPool(table)
        self._pools[table].append(value)

    def __contains__(self, table: str) -> bool:
        return table in self._pools


class ValueGenerator:
    """Generates SQL literal values for columns from their semantic kind."""

    LOREM_WORDS = (
        'lorem', 'ipsum', 'dolor', 'sit', 'amet', 'consectetur', 'adipiscing', 'elit',
        'sed', 'do', 'eiusmod', 'tempor', 'incididunt', 'ut', 'labore', 'et', 'dolore',
        'magna', 'aliqua', 'enim', 'ad', 'minim', 'veniam', 'quis', 'nostrud',
        'exercitation', 'ullamco', 'laboris', 'nisi', 'aliquip', 'ex', 'ea', 'commodo',
        'consequat', 'duis', 'aute', 'irure', 'in', 'reprehenderit', 'voluptate',
        'velit', 'esse', 'cillum', 'fugiat', 'nulla', 'pariatur', 'excepteur', 'sint',
    )

    FIRST_NAMES = (
        'James', 'Mary', 'John', 'Patricia', 'Robert', 'Jennifer', 'Michael', 'Linda',
        'William', 'Elizabeth', 'David', 'Barbara', 'Richard', 'Susan', 'Joseph', 'Jessica',
        'Thomas', 'Sarah', 'Christopher', 'Karen', 'Charles', 'Nancy', 'Daniel', 'Lisa',
        'Matthew', 'Betty', 'Anthony', 'Helen', 'Mark', 'Sandra', 'Donald', 'Donna',
    )

    LAST_NAMES = (
        'Smith', 'Johnson', 'Williams', 'Brown', 'Jones', 'Garcia', 'Miller', 'Davis',
        'Rodriguez', 'Martinez', 'Hernandez', 'Lopez', 'Gonzalez', 'Wilson', 'Anderson',
        'Thomas', 'Taylor', 'Moore', 'Jackson', 'Martin', 'Lee', 'Perez', 'Thompson',
        'White', 'Harris', 'Sanchez', 'Clark', 'Ramirez', 'Lewis', 'Robinson', 'Walker',
    )

    COMPANIES = (
        'TechCorp', 'DataSys', 'InfoTech', 'SoftWare Inc', 'Digital Solutions',
        'CloudTech', 'WebSystems', 'AppDev Ltd', 'CodeCraft', 'ByteWorks',
        'NetLogic', 'DevForce', 'TechFlow', 'DataStream', 'CyberTech',
    )

    EMAIL_DOMAINS = (
        'example.com', 'test.org', 'sample.net', 'demo.com', 'dev.local',
        'staging.org', 'dummy.net', 'fake.com', 'mock.org',
    )

    STREETS = ('Main St', 'Oak Ave', 'Pine Rd', 'First St', 'Second Ave', 'Park Blvd', 'Elm St')
    CITIES = ('Springfield', 'Madison', 'Franklin', 'Georgetown', 'Clinton', 'Riverside', 'Fairview')
    STATES = ('CA', 'NY', 'TX', 'FL', 'IL', 'PA', 'OH', 'GA', 'NC', 'MI')
    URL_DOMAINS = ('example.com', 'test.org', 'demo.net')

    HASH_ALPHABET = './ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789'
    ENUM_FALLBACK = 'active'

    HANDLERS = {
        SemanticKind.EMAIL: "_generate_email",
        SemanticKind.FIRST_NAME: "_generate_first_name",
        SemanticKind.LAST_NAME: "_generate_last_name",
        SemanticKind.FULL_NAME: "_generate_full_name",
        SemanticKind.GENERIC_NAME: "_generate_full_name",
        SemanticKind.PHONE: "_generate_phone",
        SemanticKind.ADDRESS: "_generate_address",
        SemanticKind.CITY: "_generate_city",
        SemanticKind.STATE: "_generate_state",
        SemanticKind.ZIPCODE: "_generate_zipcode",
        SemanticKind.COMPANY: "_generate_company",
        SemanticKind.URL: "_generate_url",
        SemanticKind.BIRTH_DATE: "_generate_birth_date",
        SemanticKind.LOREM_PARAGRAPH: "_generate_lorem_paragraph",
        SemanticKind.LOREM_TITLE: "_generate_lorem_title",
        SemanticKind.PASSWORD_HASH: "_generate_password_hash",
        SemanticKind.ENUM: "_generate_enum",
        SemanticKind.LOREM_TEXT: "_generate_lorem_text",
        SemanticKind.INTEGER: "_generate_integer",
        SemanticKind.DECIMAL: "_generate_decimal",
        SemanticKind.DATE: "_generate_date",
        SemanticKind.DATETIME: "_generate_datetime",
        SemanticKind.TIME: "_generate_time",
    }

    def __init__(self, records_per_table: int = 25, seed: Optional[int] = None,
                 rng: Optional[random.Random] = None, faker: Optional[Faker] = None,
                 now: Optional[datetime] = None, default_probability: float = 0.3):
        """Initialize with an injected or seeded random source."""
        self.records_per_table = records_per_table
        self.default_probability = default_probability
        self.rng = rng or random.Random(seed)
        self.faker = faker or Faker()
        if faker is None and seed is not None:
            self.faker.seed_instance(seed)
        self.now = (now or datetime.now()).replace(microsecond=0)

    def generate(self, column: ColumnDescriptor, table: TableDescriptor,
                 foreign_keys: Sequence[ForeignKeyEdge], key_pools: KeyPoolRegistry) -> str:
        """Produce one SQL literal for a column."""
        for edge in foreign_keys:
            if edge.table == table.name and edge.column == column.name:
                pool = key_pools.pool_for(edge.referenced_table)
                return str(pool.pick(self.rng))

        if column.default_value is not None and self.rng.random() < self.default_probability:
            return self._render_default(column.default_value)

        handler = getattr(self, self.HANDLERS[column.semantic_kind])
        return handler(column)

    def generate_row(self, table: TableDescriptor, row_index: int,
                     key_pools: KeyPoolRegistry) -> List[str]:
        """Literals for every insertable column of one row, recording its key."""
        values = []
        key_literal = None
        key_column = table.single_key_column

        for column in table.insertable_columns:
            literal = self.generate(column, table, table.foreign_keys, key_pools)
            if key_column is not None and column.name == key_column.name:
                key_literal = literal
            values.append(literal)

        if table.has_single_auto_increment_key():
            key_pools.record(table.name, row_index)
        elif key_literal is not None:
            key_pools.record(table.name, key_literal)

        return values

    @staticmethod
    def _render_default(default: str) -> str:
        if default.upper() in CURRENT_TIMESTAMP_DEFAULTS:
            return "NOW()"
        return quote_literal(default)

    def _string(self, text: str, column: ColumnDescriptor) -> str:
        if column.max_length is not None and len(text) > column.max_length:
            text = text[:column.max_length]
        return quote_literal(text)

    def _first_name(self) -> str:
        return self.rng.choice(self.FIRST_NAMES)

    def _last_name(self) -> str:
        return self.rng.choice(self.LAST_NAMES)

    def _words(self, count: int) -> str:
        return " ".join(self.rng.choice(self.LOREM_WORDS) for _ in range(count))

    def _generate_email(self, column: ColumnDescriptor) -> str:
        username = f"{self._first_name().lower()}{self._last_name().lower()}{self.rng.randint(1, 999)}"
        domain = self.rng.choice(self.EMAIL_DOMAINS)
        return self._string(f"{username}@{domain}", column)

    def _generate_first_name(self, column: ColumnDescriptor) -> str:
        return self._string(self._first_name(), column)

    def _generate_last_name(self, column: ColumnDescriptor) -> str:
        return self._string(self._last_name(), column)

    def _generate_full_name(self, column: ColumnDescriptor) -> str:
        return self._string(f"{self._first_name()} {self._last_name()}", column)

    def _generate_phone(self, column: ColumnDescriptor) -> str:
        phone = f"555-{self.rng.randint(100, 999):03d}-{self.rng.randint(1000, 9999):04d}"
        return self._string(phone, column)

    def _generate_address(self, column: ColumnDescriptor) -> str:
        return self._string(f"{self.rng.randint(100, 9999)} {self.rng.choice(self.STREETS)}", column)

    def _generate_city(self, column: ColumnDescriptor) -> str:
        return self._string(self.rng.choice(self.CITIES), column)

    def _generate_state(self, column: ColumnDescriptor) -> str:
        return self._string(self.rng.choice(self.STATES), column)

    def _generate_zipcode(self, column: ColumnDescriptor) -> str:
        return self._string(f"{self.rng.randint(10000, 99999):05d}", column)

    def _generate_company(self, column: ColumnDescriptor) -> str:
        return self._string(self.rng.choice(self.COMPANIES), column)

    def _generate_url(self, column: ColumnDescriptor) -> str:
        return self._string(f"https://www.{self.rng.choice(self.URL_DOMAINS)}", column)

    def _generate_lorem_title(self, column: ColumnDescriptor) -> str:
        words = self._words(self.rng.randint(2, 4))
        return self._string(" ".join(word.capitalize() for word in words.split()), column)

    def _generate_lorem_paragraph(self, column: ColumnDescriptor) -> str:
        """20-50 words; overflowing text is cut to leave room for an ellipsis."""
        word_count = self.rng.randint(20, 50)
        max_length = column.max_length
        if max_length is not None:
            word_count = max(1, min(word_count, max_length // 6))

        text = self._words(word_count)
        if max_length is not None and len(text) > max_length:
            if max_length > 3:
                text = text[:max_length - 3] + "..."
            else:
                text = text[:max_length]
        return quote_literal(text[:1].upper() + text[1:])

    def _generate_lorem_text(self, column: ColumnDescriptor) -> str:
        word_count = self.rng.randint(1, 5)
        max_length = column.max_length
        if max_length is not None:
            word_count = max(1, min(word_count, max_length // 6))

        text = self._words(word_count)
        if max_length is not None:
            text = text[:max_length]
        return quote_literal(text[:1].upper() + text[1:])

    def _generate_password_hash(self, column: ColumnDescriptor) -> str:
        # bcrypt-shaped, never a real hash
        body = "".join(self.rng.choice(self.HASH_ALPHABET) for _ in range(53))
        return self._string("$2y$10$" + body, column)

    def _generate_enum(self, column: ColumnDescriptor) -> str:
        values = parse_enum_values(column.column_type)
        if not values:
            logger.debug(f"No enum alternatives in '{column.column_type}' for {column.name}, using fallback")
            return quote_literal(self.ENUM_FALLBACK)
        return quote_literal(self.rng.choice(values))

    def _generate_integer(self, column: ColumnDescriptor) -> str:
        if column.is_unsigned:
            low, high = 1, 1000000
        else:
            low, high = -1000000, 1000000

        bounds = INTEGER_RANGES.get(column.data_type)
        if bounds:
            type_min, type_max, unsigned_max = bounds
            if column.is_unsigned:
                high = min(high, unsigned_max)
            else:
                low, high = max(low, type_min), min(high, type_max)
        return str(self.rng.randint(low, high))

    def _generate_decimal(self, column: ColumnDescriptor) -> str:
        """Random value within precision/scale, with exactly `scale` fractional digits."""
        precision = column.precision or 10
        scale = column.scale if column.scale is not None else 2
        integer_digits = min(max(precision - scale, 0), 15)

        integer_part = self.rng.randint(0, 10 ** integer_digits - 1) if integer_digits else 0
        if scale <= 0:
            return str(integer_part)
        fraction = self.rng.randint(0, 10 ** scale - 1)
        return f"{integer_part}.{fraction:0{scale}d}"

    def _generate_date(self, column: ColumnDescriptor) -> str:
        start = _years_ago(self.now, 5).date()
        value = self.faker.date_between(start_date=start, end_date=self.now.date())
        return quote_literal(value.strftime('%Y-%m-%d'))

    def _generate_datetime(self, column: ColumnDescriptor) -> str:
        start = _years_ago(self.now, 2)
        value = self.faker.date_time_between(start_date=start, end_date=self.now)
        return quote_literal(value.strftime('%Y-%m-%d %H:%M:%S'))

    def _generate_time(self, column: ColumnDescriptor) -> str:
        return quote_literal(
            f"{self.rng.randint(0, 23):02d}:{self.rng.randint(0, 59):02d}:{self.rng.randint(0, 59):02d}"
        )

    def _generate_birth_date(self, column: ColumnDescriptor) -> str:
        start: date = _years_ago(self.now, 80).date()
        end: date = _years_ago(self.now, 18).date()
        value = self.faker.date_between(start_date=start, end_date=end)
        return quote_literal(value.strftime('%Y-%m-%d'))


def parse_enum_values(column_type: str) -> List[str]:
    """Quoted alternatives of an enum(...) type string, unescaped."""
    return [value.replace("''", "'") for value in ENUM_VALUE_PATTERN.findall(column_type or "")]


_missing_handlers = set(SemanticKind) - set(ValueGenerator.HANDLERS)
if _missing_handlers:
    raise TypeError(f"ValueGenerator has no handler for: {sorted(k.name for k in _missing_handlers)}")
