"""Helpers to test protoc plugins without protoc."""

import io
from typing import Callable, Dict, List, Optional, Tuple

import google.protobuf.compiler.plugin_pb2
import google.protobuf.descriptor_pb2

import protots


class Response:
    """The response of a plugin run.

    Attributes
    ----------
    proto : google.protobuf.compiler.plugin_pb2.CodeGeneratorResponse
        The raw response.
    """

    def __init__(
        self, proto: google.protobuf.compiler.plugin_pb2.CodeGeneratorResponse
    ):
        self.proto = proto

    def file_content(self, name: str) -> Tuple[str, bool]:
        """Return the content of the generated file `name`.

        Returns
        -------
        Tuple[str, bool]
            The content and ``True`` if the file was generated, ``("", False)``
            otherwise.
        """
        for f in self.proto.file:
            if f.name == name:
                return f.content, True
        return "", False


def run_plugin(
    proto_files: List[google.protobuf.descriptor_pb2.FileDescriptorProto],
    files_to_generate: List[str],
    generate: Callable[[protots.Plugin], None],
    parameter: Optional[Dict[str, str]] = None,
) -> Response:
    """Run `generate` like protoc would.

    Arguments
    ---------
    proto_files : List[FileDescriptorProto]
        All files of the request, dependencies first.
    files_to_generate : List[str]
        Names of the files to generate code for.
    generate : Callable[[protots.Plugin], None]
        The code generation function.
    parameter : Dict[str, str], optional
        Plugin parameters. Empty values are passed as a key only.
    """
    params = []
    for k, v in (parameter or {}).items():
        params.append(k if v == "" else f"{k}={v}")
    req = google.protobuf.compiler.plugin_pb2.CodeGeneratorRequest(
        file_to_generate=files_to_generate,
        parameter=",".join(params),
        proto_file=proto_files,
    )
    output = io.BytesIO()
    opts = protots.Options(input=io.BytesIO(req.SerializeToString()), output=output)
    opts.run(generate)
    return Response(
        google.protobuf.compiler.plugin_pb2.CodeGeneratorResponse.FromString(
            output.getvalue()
        )
    )
