from pipe_registry.models import AbiFunction, MethodDocs, PipeContainer, PipeFunction, SmartContractPayload


def assemble_function(container: PipeContainer, entry: AbiFunction, signature: str | None) -> PipeFunction:
    """Build the function record for one ABI entry of ``container``.

    Missing devdoc/userdoc objects count as empty. Entries without a signature
    carry no documentation.
    """
    payload = container.container
    devdoc = (payload.devdoc if payload else None) or MethodDocs()
    userdoc = (payload.userdoc if payload else None) or MethodDocs()

    return PipeFunction(
        containerid=container.id,
        signature=signature,
        abi_obj=entry,
        devdoc=devdoc.methods.get(signature) if signature else None,
        userdoc=userdoc.methods.get(signature) if signature else None,
        uri=container.uri,
        tags=list(container.tags),
        timestamp=container.timestamp,
        chainid=payload.chainid if isinstance(payload, SmartContractPayload) else None,
    )
