"""Pydantic models for the extracted database schema"""

from enum import Enum

from pydantic import BaseModel, Field, model_validator

# ============================================================================
# Enumerations
# ============================================================================


class InferredSemantic(str, Enum):
    """Semantic type inferred for a column beyond its declared type"""

    UNRESOLVED = "unresolved"
    BOOLEAN = "boolean"
    GUID = "guid"


class IndexType(str, Enum):
    """Normalized index type tag"""

    UNIQUE = "unique"
    BTREE = "btree"
    HASH = "hash"
    FULLTEXT = "fulltext"
    OTHER = "other"


class ProcedureOutputType(str, Enum):
    """Kind of output a stored procedure produces"""

    NONE = "none"
    SCALAR = "scalar"
    TABULAR = "tabular"


# ============================================================================
# Table Structure Models
# ============================================================================


class Column(BaseModel):
    """A table or view column as reported by the catalog"""

    schema_name: str = Field(default="", description="Schema the owning table lives in")
    table_name: str = Field(description="Owning table name")
    name: str = Field(description="Column name")
    data_type: str = Field(description="Declared native type, including length where known")
    nullable: bool = Field(default=True, description="Whether the column accepts NULL")
    comment: str = Field(default="", description="Free-text column comment")
    inferred_semantic: InferredSemantic = Field(
        default=InferredSemantic.UNRESOLVED, description="Semantic type set by the inference pipeline"
    )

    @property
    def inferred_as_boolean(self) -> bool:
        return self.inferred_semantic is InferredSemantic.BOOLEAN

    @property
    def inferred_as_guid(self) -> bool:
        return self.inferred_semantic is InferredSemantic.GUID

    @property
    def is_resolved(self) -> bool:
        return self.inferred_semantic is not InferredSemantic.UNRESOLVED

    def resolve(self, semantic: InferredSemantic) -> None:
        """Record the inferred semantic for this column.

        A column is resolved at most once; resolving it again to a different
        semantic is a programming error.

        Args:
            semantic: The semantic to record

        Raises:
            ValueError: If the column already carries a different semantic
        """
        if self.is_resolved and self.inferred_semantic is not semantic:
            raise ValueError(
                f"Column '{self.table_name}.{self.name}' already inferred as "
                f"{self.inferred_semantic.value}, cannot change to {semantic.value}"
            )
        self.inferred_semantic = semantic


class Index(BaseModel):
    """A non primary-key index"""

    schema_name: str = Field(default="", description="Schema of the indexed table")
    table_name: str = Field(description="Indexed table name")
    name: str = Field(description="Index name")
    columns: list[str] = Field(default_factory=list, description="Key columns in index order")
    type: IndexType = Field(default=IndexType.BTREE, description="Normalized index type")

    @property
    def is_unique(self) -> bool:
        return self.type is IndexType.UNIQUE


class Relationship(BaseModel):
    """A foreign-key style relationship between two tables.

    ``keys[i]`` is the referenced column on the target table that pairs with
    ``foreigns[i]`` on the source table.
    """

    name: str = Field(description="Constraint name")
    schema_from: str = Field(default="", description="Schema of the referencing table")
    table_from: str = Field(description="Referencing (source) table")
    schema_to: str = Field(default="", description="Schema of the referenced table")
    table_to: str = Field(description="Referenced (target) table")
    keys: list[str] = Field(description="Referenced columns on the target table")
    foreigns: list[str] = Field(description="Referencing columns on the source table")

    @model_validator(mode="after")
    def _check_column_pairs(self) -> "Relationship":
        if not self.keys:
            raise ValueError(f"Relationship '{self.name}' needs at least one key column")
        if len(self.keys) != len(self.foreigns):
            raise ValueError(
                f"Relationship '{self.name}' pairs {len(self.keys)} key columns with {len(self.foreigns)} foreign columns"
            )
        return self

    @property
    def full_table_from(self) -> str:
        return f"{self.schema_from}.{self.table_from}" if self.schema_from else self.table_from

    @property
    def full_table_to(self) -> str:
        return f"{self.schema_to}.{self.table_to}" if self.schema_to else self.table_to


class Table(BaseModel):
    """A table, or a view extracted as a read-only table"""

    schema_name: str = Field(default="", description="Schema name")
    name: str = Field(description="Table name")
    is_view: bool = Field(default=False, description="Whether this entry is a view")
    columns: list[Column] = Field(default_factory=list, description="Columns in catalog order")
    indexes: list[Index] = Field(default_factory=list, description="Non primary-key indexes")
    # Derived from Schema.relationships by Schema.set_relationships()
    outgoing_relationships: list[Relationship] = Field(default_factory=list, exclude=True)
    incoming_relationships: list[Relationship] = Field(default_factory=list, exclude=True)

    @property
    def full_name(self) -> str:
        return f"{self.schema_name}.{self.name}" if self.schema_name else self.name

    def get_column(self, name: str) -> Column | None:
        """Find a column by case-insensitive name"""
        lowered = name.lower()
        for column in self.columns:
            if column.name.lower() == lowered:
                return column
        return None


# ============================================================================
# Routine Models
# ============================================================================


class Parameter(BaseModel):
    """A parameter of a scalar function or stored procedure"""

    name: str = Field(description="Parameter name without any '@' prefix")
    data_type: str = Field(description="Native parameter type")
    ordinal: int = Field(ge=0, description="Position in the parameter list")
    is_output: bool = Field(default=False, description="OUT or INOUT parameter")
    has_default: bool = Field(default=False, description="Whether a default value is declared")


class ScalarFunction(BaseModel):
    """A scalar user-defined function"""

    schema_name: str = Field(default="", description="Schema name")
    name: str = Field(description="Function name")
    return_type: str = Field(default="", description="Native return type")
    parameters: list[Parameter] = Field(default_factory=list, description="Input parameters in order")

    @property
    def full_name(self) -> str:
        return f"{self.schema_name}.{self.name}" if self.schema_name else self.name


class ResultColumn(BaseModel):
    """A column of a stored procedure's tabular result"""

    name: str
    data_type: str
    nullable: bool = True
    ordinal: int = Field(ge=0)


class StoredProcedure(BaseModel):
    """A stored procedure"""

    schema_name: str = Field(default="", description="Schema name")
    name: str = Field(description="Procedure name")
    parameters: list[Parameter] = Field(default_factory=list, description="Parameters in order")
    output_type: ProcedureOutputType = Field(default=ProcedureOutputType.NONE, description="Output classification")
    result_columns: list[ResultColumn] = Field(
        default_factory=list, description="Result set columns when the output is tabular"
    )

    @property
    def full_name(self) -> str:
        return f"{self.schema_name}.{self.name}" if self.schema_name else self.name


# ============================================================================
# Schema Root and Options
# ============================================================================


def _same_table(schema_a: str, table_a: str, schema_b: str, table_b: str) -> bool:
    if table_a.lower() != table_b.lower():
        return False
    # An empty schema on either side matches any schema (CSV input often omits it)
    return not schema_a or not schema_b or schema_a.lower() == schema_b.lower()


class Schema(BaseModel):
    """The complete extracted schema"""

    tables: list[Table] = Field(default_factory=list, description="Tables and views in extraction order")
    relationships: list[Relationship] = Field(default_factory=list, description="All relationships")
    scalar_functions: list[ScalarFunction] = Field(default_factory=list, description="Scalar functions")
    stored_procedures: list[StoredProcedure] = Field(default_factory=list, description="Stored procedures")

    def get_table(self, name: str, schema_name: str | None = None) -> Table | None:
        """Find a table by case-insensitive name, optionally within a schema"""
        for table in self.tables:
            if _same_table(table.schema_name, table.name, schema_name or "", name):
                return table
        return None

    def set_relationships(self, relationships: list[Relationship]) -> None:
        """Replace the relationship list and recompute every table's views.

        Args:
            relationships: The new, authoritative relationship list
        """
        self.relationships = list(relationships)
        for table in self.tables:
            table.outgoing_relationships = [
                rel
                for rel in self.relationships
                if _same_table(rel.schema_from, rel.table_from, table.schema_name, table.name)
            ]
            table.incoming_relationships = [
                rel for rel in self.relationships if _same_table(rel.schema_to, rel.table_to, table.schema_name, table.name)
            ]


class ExtractionOptions(BaseModel):
    """Options for one extraction run. Read-only once constructed."""

    schema_filter: str | None = Field(default=None, description="Restrict extraction to this schema")
    enable_type_inference: bool = Field(default=True, description="Infer boolean/GUID semantics from names")
    enable_data_sampling: bool = Field(default=True, description="Verify unresolved columns by sampling data")
    include_views: bool = Field(default=True, description="Extract views as read-only tables")
    include_stored_procedures: bool = Field(default=True, description="Extract stored procedures")
    include_user_defined_functions: bool = Field(default=True, description="Extract scalar functions")
    include_relationships: bool = Field(default=True, description="Extract foreign-key relationships")
    enable_legacy_relationship_inference: bool = Field(
        default=False, description="Infer relationships from naming conventions when no foreign keys exist"
    )

    model_config = {"frozen": True}
