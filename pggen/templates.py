"""Renderers for the Go source files that the code generator emits."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

import jinja2

_ENV = jinja2.Environment(
    keep_trailing_newline=True,
    undefined=jinja2.StrictUndefined,
    autoescape=False,
)


@dataclass(frozen=True)
class TableIfaceCtx:
    """A table as it appears in the DBQueries interface."""

    go_name: str
    pkey_type: str


@dataclass(frozen=True)
class ArgCtx:
    """An argument of a query, stored function or statement."""

    go_name: str
    type_name: str
    null_type_name: str = ""


@dataclass(frozen=True)
class QueryCtx:
    """A query or stored function as it appears in the DBQueries interface."""

    name: str
    return_type_name: str
    args: Sequence[ArgCtx] = field(default_factory=tuple)
    single_result: bool = False
    multi_return: bool = False
    nullable_arguments: bool = False
    box_results: bool = False


@dataclass(frozen=True)
class StmtCtx:
    """A statement as it appears in the DBQueries interface."""

    name: str
    args: Sequence[ArgCtx] = field(default_factory=tuple)


# (method name, parameter list, result) for every table; {t} is the model
# name and {k} the primary key type.
_CRUD_SIGNATURES = (
    ("Get{t}", "ctx context.Context, id {k}, opts ...pggen.GetOpt", "(*{t}, error)"),
    ("List{t}", "ctx context.Context, ids []{k}, opts ...pggen.ListOpt", "([]{t}, error)"),
    ("Insert{t}", "ctx context.Context, value *{t}, opts ...pggen.InsertOpt", "({k}, error)"),
    (
        "BulkInsert{t}",
        "ctx context.Context, values []{t}, opts ...pggen.InsertOpt",
        "([]{k}, error)",
    ),
    (
        "Update{t}",
        "ctx context.Context, value *{t}, fieldMask pggen.FieldSet, opts ...pggen.UpdateOpt",
        "(ret {k}, err error)",
    ),
    (
        "Upsert{t}",
        "ctx context.Context, value *{t}, constraintNames []string, "
        "fieldMask pggen.FieldSet, opts ...pggen.UpsertOpt",
        "({k}, error)",
    ),
    (
        "BulkUpsert{t}",
        "ctx context.Context, values []{t}, constraintNames []string, "
        "fieldMask pggen.FieldSet, opts ...pggen.UpsertOpt",
        "([]{k}, error)",
    ),
    ("Delete{t}", "ctx context.Context, id {k}, opts ...pggen.DeleteOpt", "error"),
    ("BulkDelete{t}", "ctx context.Context, ids []{k}, opts ...pggen.DeleteOpt", "error"),
    (
        "{t}FillIncludes",
        "ctx context.Context, rec *{t}, includes *include.Spec, opts ...pggen.IncludeOpt",
        "error",
    ),
    (
        "{t}BulkFillIncludes",
        "ctx context.Context, recs []*{t}, includes *include.Spec, opts ...pggen.IncludeOpt",
        "error",
    ),
)


def _method(name: str, params: Iterable[tuple[str, str]], result: str) -> list[str]:
    """Lay out an interface method with one parameter per line."""
    lines = [f"\t{name}(", "\t\tctx context.Context,"]
    lines.extend(f"\t\t{arg_name} {type_name}," for arg_name, type_name in params)
    lines.append(f"\t) {result}")
    return lines


def _plain_params(args: Sequence[ArgCtx]) -> list[tuple[str, str]]:
    return [(a.go_name, a.type_name) for a in args]


def _query_params(query: QueryCtx) -> list[tuple[str, str]]:
    if query.nullable_arguments:
        return [(a.go_name, a.null_type_name) for a in query.args]
    return _plain_params(query.args)


def _table_block(table: TableIfaceCtx) -> list[str]:
    lines = [f"\t// {table.go_name} methods"]
    for name, params, result in _CRUD_SIGNATURES:
        fmt = {"t": table.go_name, "k": table.pkey_type}
        lines.append(f"\t{name.format(**fmt)}({params.format(**fmt)}) {result.format(**fmt)}")
    return lines


def _query_block(query: QueryCtx) -> list[str]:
    lines = [f"\t// {query.name} query"]
    ret = query.return_type_name
    if query.single_result:
        result = f"(*{ret}, error)" if query.multi_return else f"({ret}, error)"
        lines.extend(_method(query.name, _query_params(query), result))
        return lines
    star = "*" if query.box_results else ""
    lines.extend(_method(query.name, _query_params(query), f"([]{star}{ret}, error)"))
    lines.extend(_method(f"{query.name}Query", _plain_params(query.args), "(*sql.Rows, error)"))
    return lines


def _stored_func_block(func: QueryCtx) -> list[str]:
    lines = [f"\t// {func.name} stored function"]
    params = _plain_params(func.args)
    lines.extend(_method(func.name, params, f"([]{func.return_type_name}, error)"))
    lines.extend(_method(f"{func.name}Query", params, "(*sql.Rows, error)"))
    return lines


def _stmt_block(stmt: StmtCtx) -> list[str]:
    return [f"\t// {stmt.name} stmt", *_method(stmt.name, _plain_params(stmt.args), "(sql.Result, error)")]


def _section(title: str, blocks: Iterable[list[str]]) -> list[str]:
    lines = ["\t//", f"\t// {title}", "\t//", ""]
    for block in blocks:
        lines.extend(block)
        lines.append("")
    return lines


def render_db_queries(
    tables: Sequence[TableIfaceCtx],
    queries: Sequence[QueryCtx],
    stored_funcs: Sequence[QueryCtx],
    stmts: Sequence[StmtCtx],
) -> str:
    """Render the DBQueries interface shared by all generated clients."""
    lines = ["", "", "type DBQueries interface {"]
    lines.extend(_section("automatic CRUD methods", map(_table_block, tables)))
    lines.extend(_section("query methods", map(_query_block, queries)))
    lines.extend(_section("stored function methods", map(_stored_func_block, stored_funcs)))
    lines.extend(_section("stmt methods", map(_stmt_block, stmts)))
    lines.extend(["}", "", ""])
    return "\n".join(lines)


_PG_CLIENT_TMPL = _ENV.from_string(
    """

// PGClient sits on top of a database connection and carries every
// generated access method for this package.
type PGClient struct {
	impl           pgClientImpl
	topLevelDB     pggen.DBConn
	errorConverter func(error) error

	// Column position tables are filled in lazily at run time. They let
	// 'SELECT *' keep working when a table returns its columns in an order
	// other than the one seen when this code was generated.
	{%- for name in scan_struct_names %}
	rwlockFor{{ name }} sync.RWMutex
	colIdxTabFor{{ name }} []int
	{%- endfor %}
}

// keeps the sync import in use when no tables are configured
var _ = sync.RWMutex{}

// NewPGClient builds a PGClient on a '*sql.DB' or on any wrapper of one.
// A wrapper must forward every call to the '*sql.DB' it holds.
//
// When conn has an ErrorConverter method returning a func(error) error,
// that function is applied to each error the generated code returns. A
// missing or nil converter leaves errors unchanged.
func NewPGClient(conn pggen.DBConn) *PGClient {
	client := &PGClient{
		topLevelDB:     conn,
		errorConverter: func(err error) error { return err },
	}
	client.impl = pgClientImpl{db: conn, client: client}

	if ec, ok := conn.(interface{ ErrorConverter() func(error) error }); ok {
		if convert := ec.ErrorConverter(); convert != nil {
			client.errorConverter = convert
		}
	}
	return client
}

func (p *PGClient) Handle() pggen.DBHandle {
	return p.topLevelDB
}

func (p *PGClient) BeginTx(ctx context.Context, opts *sql.TxOptions) (*TxPGClient, error) {
	tx, err := p.topLevelDB.BeginTx(ctx, opts)
	if err != nil {
		return nil, p.errorConverter(err)
	}
	return &TxPGClient{impl: pgClientImpl{db: tx, client: p}}, nil
}

func (p *PGClient) Conn(ctx context.Context) (*ConnPGClient, error) {
	conn, err := p.topLevelDB.Conn(ctx)
	if err != nil {
		return nil, p.errorConverter(err)
	}
	return &ConnPGClient{impl: pgClientImpl{db: conn, client: p}}, nil
}

// TxPGClient runs the generated methods inside one transaction.
type TxPGClient struct {
	impl pgClientImpl
}

func (tx *TxPGClient) Handle() pggen.DBHandle {
	return tx.sqlTx()
}

func (tx *TxPGClient) Rollback() error {
	return tx.sqlTx().Rollback()
}

func (tx *TxPGClient) Commit() error {
	return tx.sqlTx().Commit()
}

func (tx *TxPGClient) sqlTx() *sql.Tx {
	return tx.impl.db.(*sql.Tx)
}

// ConnPGClient runs the generated methods on one dedicated connection.
type ConnPGClient struct {
	impl pgClientImpl
}

func (conn *ConnPGClient) Close() error {
	return conn.impl.db.(*sql.Conn).Close()
}

func (conn *ConnPGClient) Handle() pggen.DBHandle {
	return conn.impl.db
}

// pgClientImpl is shared by all the client kinds. It keeps a pointer back
// to the PGClient that owns the column position tables.
type pgClientImpl struct {
	db     pggen.DBHandle
	client *PGClient
}

"""
)


_PRELUDE_TMPL = _ENV.from_string(
    r'''
// Code generated by pggen. DO NOT EDIT

package {{ pkg }}

import (
	"context"
	"database/sql"
	"database/sql/driver"
	"fmt"
	"strings"
	"sync"
	"time"

	"github.com/jackc/pgconn"
	"github.com/opendoor/pggen"
)

type fieldNameAndIdx struct {
	name string
	idx  int
}

func parenWrap(in string) string {
	return "(" + in + ")"
}

func skipInsertField(f fieldNameAndIdx, pkeyName string, includeID bool, defaults pggen.FieldSet) bool {
	return defaults.Test(f.idx) || (!includeID && f.name == pkeyName)
}

func genInsertCommon(
	into *strings.Builder,
	table string,
	fields []fieldNameAndIdx,
	nrecords int,
	pkeyName string,
	includeID bool,
	defaultFieldSet pggen.FieldSet,
) {
	into.WriteString("INSERT INTO " + table + " (")
	width := 0
	for i, f := range fields {
		if skipInsertField(f, pkeyName, includeID, defaultFieldSet) {
			continue
		}
		width++
		into.WriteString(`"` + f.name + `"`)
		if i+1 < len(fields) {
			into.WriteByte(',')
		}
	}
	into.WriteString(") VALUES ")

	arg := 1
	for rec := 0; rec < nrecords; rec++ {
		placeholders := make([]string, width)
		for col := range placeholders {
			placeholders[col] = fmt.Sprintf("$%d", arg)
			arg++
		}
		closing := "),\n"
		if rec == nrecords-1 {
			closing = ")\n"
		}
		into.WriteString("(" + strings.Join(placeholders, ", ") + closing)
	}
}

func genBulkInsertStmt(
	table string,
	fields []fieldNameAndIdx,
	nrecords int,
	pkeyName string,
	includeID bool,
	defaultFieldSet pggen.FieldSet,
) string {
	var b strings.Builder
	genInsertCommon(&b, table, fields, nrecords, pkeyName, includeID, defaultFieldSet)
	b.WriteString(` RETURNING "` + pkeyName + `"`)
	return b.String()
}

func genUpdateStmt(
	table string,
	pgPkey string,
	fields []fieldNameAndIdx,
	fieldMask pggen.FieldSet,
	pkeyName string,
) string {
	cols := []string{}
	slots := []string{}
	for i, f := range fields {
		if !fieldMask.Test(i) {
			continue
		}
		cols = append(cols, `"`+f.name+`"`)
		slots = append(slots, fmt.Sprintf("$%d", len(slots)+1))
	}

	target, values := cols[0], slots[0]
	if len(cols) > 1 {
		target = parenWrap(strings.Join(cols, ","))
		values = parenWrap(strings.Join(slots, ", "))
	}
	return fmt.Sprintf(
		`UPDATE %s SET %s = %s WHERE "%s" = $%d RETURNING "%s"`,
		table, target, values, pgPkey, len(slots)+1, pkeyName,
	)
}

func (p *PGClient) fillColPosTab(
	ctx context.Context,
	genTimeColIdxTab map[string]int,
	rwlock *sync.RWMutex,
	rows *sql.Rows,
	tab *[]int,
) error {
	// Take the write lock first so that concurrent readers wait for one
	// table to be built instead of all building their own.
	rwlock.Lock()
	defer rwlock.Unlock()

	cols, err := rows.Columns()
	if err != nil {
		return fmt.Errorf("reading column names: %s", err.Error())
	}

	positions := make([]int, len(cols))
	for runIdx, name := range cols {
		genIdx, known := genTimeColIdxTab[name]
		if !known {
			genIdx = -1
		}
		positions[runIdx] = genIdx
	}
	*tab = positions
	return nil
}

func (p *pgClientImpl) queryContext(ctx context.Context, query string, args ...interface{}) (*sql.Rows, error) {
	rows, err := p.db.QueryContext(ctx, query, args...)
	if err != nil && isInvalidCachedPlanError(err) {
		// the driver has already dropped its statement cache, so one retry suffices
		return p.db.QueryContext(ctx, query, args...)
	}
	return rows, err
}

func isInvalidCachedPlanError(err error) bool {
	pgErr, ok := err.(*pgconn.PgError)
	return ok &&
		pgErr.Code == "0A000" &&
		pgErr.Severity == "ERROR" &&
		pgErr.Message == "cached plan must not change result type"
}

func convertNullString(v sql.NullString) *string {
	if !v.Valid {
		return nil
	}
	return &v.String
}

func convertNullBool(v sql.NullBool) *bool {
	if !v.Valid {
		return nil
	}
	return &v.Bool
}

func convertNullFloat64(v sql.NullFloat64) *float64 {
	if !v.Valid {
		return nil
	}
	return &v.Float64
}

func convertNullInt64(v sql.NullInt64) *int64 {
	if !v.Valid {
		return nil
	}
	return &v.Int64
}

// pggenSinkScanner discards whatever value it is asked to scan.
type pggenSinkScanner struct{}

func (*pggenSinkScanner) Scan(interface{}) error {
	return nil
}

// pggenNullTime is a nullable time value. Besides time.Time it accepts the
// string form that jackc/pgx produces for postgres 'time' columns. It works
// for non-nullable columns too.
type pggenNullTime struct {
	Time  time.Time
	Valid bool
}

func (n *pggenNullTime) Scan(value interface{}) error {
	if value == nil {
		*n = pggenNullTime{}
		return nil
	}
	n.Valid = true

	switch v := value.(type) {
	case time.Time:
		n.Time = v
	case string:
		parsed, err := time.Parse("15:04:05-07", v)
		if err != nil {
			if parsed, err = time.Parse("15:04:05", v); err != nil {
				return fmt.Errorf("parsing pg time: %s", err.Error())
			}
		}
		n.Time = parsed
	default:
		return fmt.Errorf("scanning to NullTime: expected time.Time")
	}
	return nil
}

func (n pggenNullTime) Value() (driver.Value, error) {
	if n.Valid {
		return n.Time, nil
	}
	return nil, nil
}

func convertNullTime(v pggenNullTime) *time.Time {
	if !v.Valid {
		return nil
	}
	return &v.Time
}
'''
)


def render_pg_client(scan_struct_names: Sequence[str]) -> str:
    """Render the PGClient, TxPGClient and ConnPGClient types."""
    return _PG_CLIENT_TMPL.render(scan_struct_names=list(scan_struct_names))


def render_prelude(pkg: str) -> str:
    """Render the prelude file of helpers that generated code depends on."""
    return _PRELUDE_TMPL.render(pkg=pkg)