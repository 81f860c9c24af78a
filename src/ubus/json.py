''' Wrapper module to select the most performant available library to handle
    the equivalent of :func:`json.loads` and :func:`json.dumps`. This is used
    to translate blobmsg tables to and from JSON text, the same representation
    the ubus command line tools use for method arguments and results.
'''

# msgspec is an optional extra; orjson is a hard dependency and is only
# imported if msgspec is not available.

msgspec = None
orjson = None

try:
    import msgspec
except ImportError:
    import orjson


# The msgspec 'encode' operation returns bytes, as does orjson.dumps. Callers
# that want text need to decode the result themselves.

if msgspec is not None:
    encoder = msgspec.json.Encoder()
    decoder = msgspec.json.Decoder()
    dumps = encoder.encode
    loads = decoder.decode
else:
    dumps = orjson.dumps
    loads = orjson.loads

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
