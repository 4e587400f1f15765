"""Shell command trees: model, word expansion, tree display and execution."""