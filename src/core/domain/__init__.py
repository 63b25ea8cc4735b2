"""Dominio de `soapcall`: la llamada SOAP y su resultado.

- `models`: `CallConfig` (qué se envía y cómo se procesa la respuesta),
  `ResponseMeta`, `RetryAttempt` y `CallResult`.
- `flatten_mode`: modo de aplanado elegido por la CLI (ninguno, XML o HTML).
- `errors`: errores por etapa (`config`, `template`, `transport`, `decode`,
  `flatten`).
"""
