from globfilter.main import entrypoint

entrypoint()
