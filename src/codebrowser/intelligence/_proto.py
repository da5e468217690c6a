"""SCIP protobuf message classes.

Declares the subset of scip.proto the index store reads (Index, Document,
Occurrence) with their upstream field numbers and builds message classes
from it with the protobuf runtime. Fields not declared here (metadata,
symbol information, diagnostics, ...) are retained as unknown fields and
ignored.

Upstream schema: https://github.com/sourcegraph/scip/blob/main/scip.proto
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

_FieldProto = descriptor_pb2.FieldDescriptorProto

SYMBOL_ROLE_DEFINITION = 0x1
SYMBOL_ROLE_IMPORT = 0x2
SYMBOL_ROLE_WRITE_ACCESS = 0x4
SYMBOL_ROLE_READ_ACCESS = 0x8


def _add_field(
    message: descriptor_pb2.DescriptorProto,
    name: str,
    number: int,
    field_type: int,
    *,
    repeated: bool = False,
    type_name: str | None = None,
) -> None:
    field = message.field.add()
    field.name = name
    field.number = number
    field.type = field_type  # type: ignore[assignment]
    field.label = (  # type: ignore[assignment]
        _FieldProto.LABEL_REPEATED if repeated else _FieldProto.LABEL_OPTIONAL
    )
    if type_name is not None:
        field.type_name = type_name


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="codebrowser/scip.proto",
        package="scip",
        syntax="proto3",
    )

    index = file_proto.message_type.add(name="Index")
    _add_field(
        index, "documents", 2, _FieldProto.TYPE_MESSAGE, repeated=True, type_name=".scip.Document"
    )

    document = file_proto.message_type.add(name="Document")
    _add_field(document, "relative_path", 1, _FieldProto.TYPE_STRING)
    _add_field(
        document,
        "occurrences",
        2,
        _FieldProto.TYPE_MESSAGE,
        repeated=True,
        type_name=".scip.Occurrence",
    )
    _add_field(document, "language", 4, _FieldProto.TYPE_STRING)

    occurrence = file_proto.message_type.add(name="Occurrence")
    _add_field(occurrence, "range", 1, _FieldProto.TYPE_INT32, repeated=True)
    _add_field(occurrence, "symbol", 2, _FieldProto.TYPE_STRING)
    _add_field(occurrence, "symbol_roles", 3, _FieldProto.TYPE_INT32)

    return file_proto


# Private pool so an installed scip package registering the same names cannot clash
_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_file().SerializeToString())

Index = message_factory.GetMessageClass(_pool.FindMessageTypeByName("scip.Index"))
Document = message_factory.GetMessageClass(_pool.FindMessageTypeByName("scip.Document"))
Occurrence = message_factory.GetMessageClass(_pool.FindMessageTypeByName("scip.Occurrence"))

__all__ = [
    "Document",
    "Index",
    "Occurrence",
    "SYMBOL_ROLE_DEFINITION",
    "SYMBOL_ROLE_IMPORT",
    "SYMBOL_ROLE_READ_ACCESS",
    "SYMBOL_ROLE_WRITE_ACCESS",
]
