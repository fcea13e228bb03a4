"""Prometheus remote-write encoder – protobuf ``WriteRequest`` + snappy.

The message classes are built from a descriptor matching the ``prompb``
schema (``types.proto`` / ``remote.proto``), limited to the fields a
sample push needs::

    message Label      { string name = 1; string value = 2; }
    message Sample     { double value = 1; int64 timestamp = 2; }
    message TimeSeries { repeated Label labels = 1; repeated Sample samples = 2; }
    message WriteRequest { repeated TimeSeries timeseries = 1; }
"""

from __future__ import annotations

import logging

import snappy
from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import EncodeError

from ..collector.base import INTERFACE_LABEL, Batch
from ..errors import EncodingError
from .base import BaseEncoder, EncodedPayload

logger = logging.getLogger(__name__)

REMOTE_WRITE_VERSION = "0.1.0"
METRIC_NAME_LABEL = "__name__"

_F = descriptor_pb2.FieldDescriptorProto


def _build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    fdp = descriptor_pb2.FileDescriptorProto(
        name="ethtool_stats/prompb/remote.proto",
        package="prometheus",
        syntax="proto3",
    )

    label = fdp.message_type.add(name="Label")
    label.field.add(name="name", number=1, type=_F.TYPE_STRING, label=_F.LABEL_OPTIONAL)
    label.field.add(name="value", number=2, type=_F.TYPE_STRING, label=_F.LABEL_OPTIONAL)

    sample = fdp.message_type.add(name="Sample")
    sample.field.add(name="value", number=1, type=_F.TYPE_DOUBLE, label=_F.LABEL_OPTIONAL)
    sample.field.add(name="timestamp", number=2, type=_F.TYPE_INT64, label=_F.LABEL_OPTIONAL)

    series = fdp.message_type.add(name="TimeSeries")
    series.field.add(
        name="labels", number=1, type=_F.TYPE_MESSAGE,
        label=_F.LABEL_REPEATED, type_name=".prometheus.Label",
    )
    series.field.add(
        name="samples", number=2, type=_F.TYPE_MESSAGE,
        label=_F.LABEL_REPEATED, type_name=".prometheus.Sample",
    )

    request = fdp.message_type.add(name="WriteRequest")
    request.field.add(
        name="timeseries", number=1, type=_F.TYPE_MESSAGE,
        label=_F.LABEL_REPEATED, type_name=".prometheus.TimeSeries",
    )
    return fdp


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_file_descriptor().SerializeToString())

WriteRequest = message_factory.GetMessageClass(_pool.FindMessageTypeByName("prometheus.WriteRequest"))
TimeSeries = message_factory.GetMessageClass(_pool.FindMessageTypeByName("prometheus.TimeSeries"))


def build_write_request(batch: Batch):
    """Return a ``WriteRequest`` with one single-sample series per batch sample."""
    request = WriteRequest()
    timestamp_ms = batch.timestamp_ms
    for s in batch.samples:
        series = request.timeseries.add()
        series.labels.add(name=METRIC_NAME_LABEL, value=s.name)
        series.labels.add(name=INTERFACE_LABEL, value=s.labels[INTERFACE_LABEL])
        series.samples.add(value=float(s.value), timestamp=timestamp_ms)
    return request


def decode_write_request(body: bytes):
    """Inverse of :meth:`RemoteWriteEncoder.encode` for a payload body."""
    request = WriteRequest()
    request.ParseFromString(snappy.uncompress(body))
    return request


class RemoteWriteEncoder(BaseEncoder):
    """Encodes batches for a Prometheus remote-write receiver."""

    @property
    def name(self) -> str:
        return "remote_write"

    def encode(self, batch: Batch) -> EncodedPayload:
        try:
            data = build_write_request(batch).SerializeToString()
        except (EncodeError, ValueError, TypeError) as exc:
            raise EncodingError(f"cannot serialize {batch.interface}: {exc}") from exc

        try:
            compressed = snappy.compress(data)
        except (TypeError, ValueError) as exc:
            raise EncodingError(f"cannot compress {batch.interface}: {exc}") from exc

        logger.debug(
            "Encoded %d series for %s (%d bytes, %d compressed)",
            len(batch), batch.interface, len(data), len(compressed),
        )
        return EncodedPayload(
            body=compressed,
            headers={
                "Content-Encoding": "snappy",
                "Content-Type": "application/x-protobuf",
                "X-Prometheus-Remote-Write-Version": REMOTE_WRITE_VERSION,
            },
        )
