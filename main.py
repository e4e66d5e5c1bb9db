import marimo

__generated_with = "0.18.3"
app = marimo.App()


@app.cell
def _():
    import cfg_manager as cm
    from IPython.lib.pretty import pprint
    return cm, pprint


@app.cell
def _(cm):
    documents = {"app.cfg": "@annotation debug\n\nname = MyApp // shown in title\nport = 80"}
    cfg = cm.create_cfg_file(storage=cm.create_memory_storage(documents))
    cfg.open("app.cfg")
    return cfg, documents


@app.cell
def _(cfg, pprint):
    pprint(cfg)
    return


@app.cell
def _(cfg):
    cfg.set_edited_value("port", "8080")
    cfg.add_edited_annotation("verbose")
    cfg.pend_annotation_removal("debug")
    return


@app.cell
def _(cfg, pprint):
    pprint(cfg)
    return


@app.cell
def _(cfg, documents):
    cfg.save("app.cfg", apply_before_save=True)
    print(documents["app.cfg"])
    return


@app.cell
def _():
    return


if __name__ == "__main__":
    app.run()
